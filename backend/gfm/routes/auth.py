from datetime import datetime, timezone
from flask import Blueprint, request, jsonify
from flask_jwt_extended import (
    create_access_token, jwt_required, get_jwt, current_user
)
from gfm.errors import Unauthenticated, ValidationError
from gfm.extensions import db, limiter
from gfm.models import User, TokenBlocklist
from gfm.models.User import USERNAME_PATTERN
from utils.audit import log_event

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip()
    password = data.get('password') or ''
    ip = request.remote_addr

    if not username or not password:
        raise ValidationError("Username and password are required")

    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Invalid username format")

    user = User.query.filter_by(username=username).first()

    if user and user.is_active and user.check_password(password):
        access_token = create_access_token(
            identity=user.username,
            additional_claims={"role": user.role.value}
        )
        log_event("LOGIN_SUCCESS", username=user.username, ip=ip, description=f"{username} logged in")
        return jsonify({
            "success": True,
            "token": access_token,
            "user": user.to_dict(),
        }), 200

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {username}", level="WARNING")
    raise Unauthenticated("Invalid credentials")


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    return jsonify({"success": True, "user": current_user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    expires = datetime.fromtimestamp(claims["exp"], tz=timezone.utc).replace(tzinfo=None)

    token_block = TokenBlocklist(
        jti=claims["jti"],
        token_type=claims.get("type", "access"),
        username=current_user.username,
        expires_at=expires,
    )
    db.session.add(token_block)
    db.session.commit()

    log_event("LOGOUT", username=current_user.username, ip=request.remote_addr)
    return jsonify({"success": True, "message": "Successfully logged out"}), 200
