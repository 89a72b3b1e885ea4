from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from sqlalchemy.exc import IntegrityError
from gfm.errors import Conflict, NotFound, ValidationError
from gfm.extensions import db
from gfm.models import Assignment, Batch, RoleEnum, TEACHER_ROLES, User
from utils.access_control import Action, can
from utils.audit import log_event
from utils.decorators import permission_required

assignments_bp = Blueprint('assignments', __name__)


@assignments_bp.route('', methods=['GET'])
@jwt_required()
def list_assignments():
    query = Assignment.query

    if can(current_user.role, Action.manage_assignments):
        teacher_username = request.args.get('teacher_username')
        batch_id = request.args.get('batch_id', type=int)
        if teacher_username:
            query = query.filter_by(teacher_username=teacher_username)
        if batch_id:
            query = query.filter_by(batch_id=batch_id)
    else:
        query = query.filter_by(teacher_username=current_user.username)

    assignments = query.order_by(Assignment.teacher_username, Assignment.batch_id).all()
    return jsonify({"success": True, "assignments": [a.to_dict() for a in assignments]}), 200


@assignments_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.manage_assignments)
def create_assignment():
    data = request.get_json(silent=True) or {}

    missing = [field for field in ('teacher_username', 'batch_id') if not data.get(field)]
    if missing:
        raise ValidationError(f"Missing required fields: {missing}")

    teacher = User.query.filter_by(username=str(data['teacher_username']).strip()).first()
    if not teacher:
        raise NotFound("Teacher not found")
    if teacher.role not in TEACHER_ROLES:
        raise ValidationError("Only teachers can be assigned to batches")

    try:
        batch_id = int(data['batch_id'])
    except (TypeError, ValueError):
        raise ValidationError("batch_id must be an integer")
    if not db.session.get(Batch, batch_id):
        raise NotFound("Batch not found")

    try:
        role = RoleEnum(data.get('role') or RoleEnum.attendance_teacher.value)
    except ValueError:
        raise ValidationError("Invalid assignment role")
    if role not in TEACHER_ROLES:
        raise ValidationError("Invalid assignment role")

    if Assignment.query.filter_by(teacher_username=teacher.username, batch_id=batch_id).first():
        raise Conflict("Teacher is already assigned to this batch")

    assignment = Assignment(teacher_username=teacher.username, batch_id=batch_id, role=role)
    db.session.add(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Teacher is already assigned to this batch")

    log_event("ASSIGNMENT_CREATED", username=current_user.username, ip=request.remote_addr,
              description=f"{teacher.username} -> batch {batch_id}")
    return jsonify({"success": True, "message": "Assignment created", "assignment": assignment.to_dict()}), 201


@assignments_bp.route('/<int:assignment_id>', methods=['DELETE'])
@jwt_required()
@permission_required(Action.manage_assignments)
def delete_assignment(assignment_id):
    assignment = db.session.get(Assignment, assignment_id)
    if not assignment:
        raise NotFound("Assignment not found")

    description = f"{assignment.teacher_username} -> batch {assignment.batch_id}"
    db.session.delete(assignment)
    db.session.commit()

    log_event("ASSIGNMENT_DELETED", username=current_user.username, ip=request.remote_addr,
              description=description)
    return jsonify({"success": True, "message": "Assignment deleted"}), 200
