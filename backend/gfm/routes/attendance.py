from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.services import attendance as attendance_service
from utils.access_control import Action
from utils.audit import log_event
from utils.dates import parse_day
from utils.decorators import permission_required

attendance_bp = Blueprint('attendance', __name__)


@attendance_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.mark_attendance)
def mark_attendance():
    data = request.get_json(silent=True) or {}
    records = data.get('records', data.get('attendance'))

    result = attendance_service.mark_attendance(current_user, records, default_date=data.get('date'))

    summary = result["summary"]
    log_event("ATTENDANCE_MARKED", username=current_user.username, ip=request.remote_addr,
              description=", ".join(f"{k}={v}" for k, v in summary.items() if v))
    return jsonify({"success": True, **result}), 200


@attendance_bp.route('/date/<date_str>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_attendance)
def get_attendance_by_date(date_str):
    day = parse_day(date_str)
    batch_id = request.args.get('batch_id', type=int)

    records = attendance_service.list_for_date(current_user, day, batch_id=batch_id)
    return jsonify({"success": True, "date": day.isoformat(), "attendance": records}), 200


@attendance_bp.route('/student/<prn>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_attendance)
def get_student_attendance(prn):
    student, records = attendance_service.list_for_student(current_user, prn)
    return jsonify({"success": True, "student": student.to_dict(), "attendance": records}), 200


@attendance_bp.route('/<int:attendance_id>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_attendance)
def get_attendance(attendance_id):
    record = attendance_service.get_record(current_user, attendance_id)
    return jsonify({
        "success": True,
        "attendance": record.to_dict(lock_hours=attendance_service.lock_hours()),
    }), 200


@attendance_bp.route('/<int:attendance_id>', methods=['PUT'])
@jwt_required()
@permission_required(Action.mark_attendance)
def update_attendance(attendance_id):
    if request.is_json:
        data = request.get_json(silent=True) or {}
    else:
        data = request.form
    proof = request.files.get('proof')

    record = attendance_service.update_attendance(
        current_user, attendance_id, status=data.get('status'), proof_file=proof
    )

    log_event("ATTENDANCE_UPDATED", username=current_user.username, ip=request.remote_addr,
              description=f"id={record.id} status={record.status.value}")
    return jsonify({
        "success": True,
        "message": "Attendance updated",
        "attendance": record.to_dict(lock_hours=attendance_service.lock_hours()),
    }), 200
