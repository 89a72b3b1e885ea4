from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.errors import Conflict, NotFound, ValidationError
from gfm.extensions import db
from gfm.models import Assignment, Batch, Student
from utils.access_control import Action, ensure_batch_access, get_allowed_batch_ids
from utils.audit import log_event
from utils.decorators import permission_required

batches_bp = Blueprint('batches', __name__)


def get_batch_or_404(batch_id):
    batch = db.session.get(Batch, batch_id)
    if not batch:
        raise NotFound("Batch not found")
    return batch


@batches_bp.route('', methods=['GET'])
@jwt_required()
@permission_required(Action.view_roster)
def list_batches():
    batch_ids = get_allowed_batch_ids(current_user)
    batches = Batch.query.filter(Batch.id.in_(batch_ids)).order_by(Batch.name).all()

    result = []
    for batch in batches:
        data = batch.to_dict()
        data["student_count"] = Student.query.filter_by(batch_id=batch.id).count()
        result.append(data)

    return jsonify({"success": True, "batches": result}), 200


@batches_bp.route('/<int:batch_id>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_roster)
def get_batch(batch_id):
    batch = get_batch_or_404(batch_id)
    ensure_batch_access(current_user, batch.id)

    data = batch.to_dict()
    data["students"] = [s.to_dict() for s in Student.query.filter_by(batch_id=batch.id).order_by(Student.prn)]
    data["assignments"] = [a.to_dict() for a in batch.assignments]
    return jsonify({"success": True, "batch": data}), 200


@batches_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.manage_batches)
def create_batch():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        raise ValidationError("Missing required fields: ['name']")

    if Batch.query.filter_by(name=name).first():
        raise Conflict("Batch name already exists")

    batch = Batch(name=name, description=data.get('description'))
    db.session.add(batch)
    db.session.commit()

    log_event("BATCH_CREATED", username=current_user.username, ip=request.remote_addr, description=name)
    return jsonify({"success": True, "message": "Batch created", "batch": batch.to_dict()}), 201


@batches_bp.route('/<int:batch_id>', methods=['PUT'])
@jwt_required()
@permission_required(Action.manage_batches)
def update_batch(batch_id):
    batch = get_batch_or_404(batch_id)
    data = request.get_json(silent=True) or {}

    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError("Batch name cannot be empty")
        if name != batch.name and Batch.query.filter_by(name=name).first():
            raise Conflict("Batch name already exists")
        batch.name = name
    if 'description' in data:
        batch.description = data['description']

    db.session.commit()
    log_event("BATCH_UPDATED", username=current_user.username, ip=request.remote_addr, description=batch.name)
    return jsonify({"success": True, "message": "Batch updated", "batch": batch.to_dict()}), 200


@batches_bp.route('/<int:batch_id>', methods=['DELETE'])
@jwt_required()
@permission_required(Action.manage_batches)
def delete_batch(batch_id):
    batch = get_batch_or_404(batch_id)

    if Student.query.filter_by(batch_id=batch.id).first() or Assignment.query.filter_by(batch_id=batch.id).first():
        raise Conflict("Batch still has students or assignments")

    name = batch.name
    db.session.delete(batch)
    db.session.commit()

    log_event("BATCH_DELETED", username=current_user.username, ip=request.remote_addr, description=name)
    return jsonify({"success": True, "message": "Batch deleted"}), 200
