from flask import request, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request


def log_rate_limit_violation(request_limit):
    from gfm.extensions import db
    from gfm.models import AuditLog

    try:
        verify_jwt_in_request(optional=True)
        username = get_jwt_identity()
    except Exception:
        username = None

    log = AuditLog(
        username=username,
        action=f"RATE_LIMIT_EXCEEDED: {request.method} {request.path}",
        ip_address=request.remote_addr,
    )
    db.session.add(log)
    db.session.commit()

    response = jsonify({
        "success": False,
        "error": "rate_limited",
        "message": "Rate limit exceeded. Please slow down."
    })
    response.status_code = 429
    return response
