from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.services import followups as followup_service
from utils.access_control import Action
from utils.audit import log_event
from utils.decorators import permission_required

followups_bp = Blueprint('followups', __name__)


@followups_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.create_followup)
def create_followup():
    if request.is_json:
        data = request.get_json(silent=True) or {}
    else:
        data = request.form

    followup = followup_service.create_followup(
        current_user,
        data.get('attendance_id'),
        data.get('reason'),
        proof_file=request.files.get('proof'),
    )

    log_event("FOLLOWUP_CREATED", username=current_user.username, ip=request.remote_addr,
              description=f"attendance_id={followup.attendance_id}")
    return jsonify({
        "success": True,
        "message": "Follow-up added",
        "followup": followup.to_dict(include_attendance=True),
    }), 201


@followups_bp.route('/<int:followup_id>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_followups)
def get_followup(followup_id):
    followup = followup_service.get_followup(current_user, followup_id)
    return jsonify({"success": True, "followup": followup.to_dict(include_attendance=True)}), 200


@followups_bp.route('/student/<prn>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_followups)
def get_student_followups(prn):
    followups = followup_service.list_for_student(current_user, prn)
    return jsonify({
        "success": True,
        "followups": [f.to_dict(include_attendance=True) for f in followups],
    }), 200
