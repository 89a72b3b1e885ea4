from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.errors import NotFound, ValidationError
from gfm.extensions import db
from gfm.models import Student
from gfm.services import students as student_service
from utils.access_control import Action, ensure_batch_access, get_allowed_batch_ids
from utils.audit import log_event
from utils.decorators import permission_required
from utils.pagination import page_args, pagination_meta, search_and_paginate

students_bp = Blueprint("students", __name__)


def get_student_or_404(prn):
    student = Student.query.filter_by(prn=prn).first()
    if not student:
        raise NotFound("Student not found")
    return student


@students_bp.route('', methods=['GET'])
@jwt_required()
@permission_required(Action.view_roster)
def list_students():
    page, per_page, search_term = page_args()
    raw_batch_ids = request.args.getlist("batch_id", type=int)

    allowed_batch_ids = get_allowed_batch_ids(current_user, raw_batch_ids)

    query = Student.query.filter(Student.batch_id.in_(allowed_batch_ids)).order_by(Student.prn)

    paginated = search_and_paginate(query, Student, search_term, ["name", "prn", "email"], page, per_page)

    return jsonify({
        "success": True,
        "students": [s.to_dict() for s in paginated.items],
        **pagination_meta(paginated),
    }), 200


@students_bp.route('/<prn>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_roster)
def get_student(prn):
    student = get_student_or_404(prn)
    ensure_batch_access(current_user, student.batch_id)
    return jsonify({"success": True, "student": student.to_dict(include_batch=True)}), 200


@students_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.manage_students)
def create_student():
    data = request.get_json(silent=True) or {}
    student = student_service.create_student(data)

    log_event("STUDENT_CREATED", username=current_user.username, ip=request.remote_addr, description=student.prn)
    return jsonify({"success": True, "message": "Student added", "student": student.to_dict()}), 201


@students_bp.route('/import', methods=['POST'])
@jwt_required()
@permission_required(Action.manage_students)
def import_students():
    if 'file' in request.files:
        rows = student_service.read_import_file(request.files['file'])
    else:
        data = request.get_json(silent=True) or {}
        rows = data.get('students')
        if not isinstance(rows, list):
            raise ValidationError("Provide a 'students' list or an import file")

    result = student_service.import_students(rows)

    log_event("STUDENTS_IMPORTED", username=current_user.username, ip=request.remote_addr,
              description=f"imported={result['imported']} duplicates={result['duplicates']} invalid={result['invalid']}")
    return jsonify({"success": True, **result}), 200


@students_bp.route('/<prn>', methods=['PUT'])
@jwt_required()
@permission_required(Action.manage_students)
def update_student(prn):
    student = get_student_or_404(prn)
    data = request.get_json(silent=True) or {}
    if not data:
        raise ValidationError("No input data provided")
    if 'prn' in data and str(data['prn']).strip() != student.prn:
        raise ValidationError("PRN cannot be changed")

    student = student_service.update_student(student, data)

    log_event("STUDENT_UPDATED", username=current_user.username, ip=request.remote_addr, description=student.prn)
    return jsonify({"success": True, "message": "Student updated", "student": student.to_dict()}), 200


@students_bp.route('/<prn>', methods=['DELETE'])
@jwt_required()
@permission_required(Action.manage_students)
def delete_student(prn):
    student = get_student_or_404(prn)
    db.session.delete(student)
    db.session.commit()

    log_event("STUDENT_DELETED", username=current_user.username, ip=request.remote_addr, description=prn)
    return jsonify({"success": True, "message": "Student deleted"}), 200
