from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.errors import Conflict, NotFound, ValidationError
from gfm.extensions import db
from gfm.models import Assignment, User, RoleEnum
from gfm.models.User import USERNAME_PATTERN
from utils.access_control import Action
from utils.audit import log_event
from utils.decorators import permission_required
from utils.pagination import page_args, pagination_meta, search_and_paginate


users_bp = Blueprint('users', __name__)


def parse_role(value):
    try:
        return RoleEnum(value)
    except ValueError:
        raise ValidationError(f"Invalid role '{value}'")


def parse_username(value):
    if not isinstance(value, str) or not USERNAME_PATTERN.match(value.strip()):
        raise ValidationError("Username must be at least 3 characters of letters, digits or . @ + - _")
    return value.strip()


def parse_password(value):
    if not isinstance(value, str) or not value:
        raise ValidationError("Password must be a non-empty string")
    return value


def parse_is_active(value):
    if not isinstance(value, bool):
        raise ValidationError("is_active must be true or false")
    return value


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


@users_bp.route('', methods=['GET'])
@jwt_required()
@permission_required(Action.manage_users)
def list_users():
    page, per_page, search_term = page_args()
    role = request.args.get("role")

    query = User.query
    if role:
        query = query.filter(User.role == parse_role(role))

    paginated = search_and_paginate(
        query.order_by(User.username), User, search_term, ["username", "display_name", "email"], page, per_page
    )

    return jsonify({
        "success": True,
        "users": [u.to_dict() for u in paginated.items],
        **pagination_meta(paginated),
    }), 200


@users_bp.route('/<int:user_id>', methods=['GET'])
@jwt_required()
@permission_required(Action.manage_users)
def get_user(user_id):
    return jsonify({"success": True, "user": get_user_or_404(user_id).to_dict()}), 200


@users_bp.route('', methods=['POST'])
@jwt_required()
@permission_required(Action.manage_users)
def create_user():
    data = request.get_json(silent=True) or {}

    missing = [field for field in ('username', 'password', 'role') if not data.get(field)]
    if missing:
        raise ValidationError(f"Missing required fields: {missing}")

    username = parse_username(data['username'])
    if User.query.filter_by(username=username).first():
        raise Conflict("Username already exists")

    new_user = User(
        username=username,
        role=parse_role(data['role']),
        display_name=data.get('display_name') or data.get('name'),
        mobile=data.get('mobile'),
        email=data.get('email'),
        is_active=parse_is_active(data.get('is_active', True)),
    )
    new_user.set_password(parse_password(data['password']))

    db.session.add(new_user)
    db.session.commit()

    log_event("USER_CREATED", username=current_user.username, ip=request.remote_addr,
              description=f"{new_user.username} ({new_user.role.value})")
    return jsonify({"success": True, "message": "User created", "user": new_user.to_dict()}), 201


@users_bp.route('/<int:user_id>', methods=['PUT'])
@jwt_required()
@permission_required(Action.manage_users)
def update_user(user_id):
    user = get_user_or_404(user_id)
    data = request.get_json(silent=True) or {}

    if not data:
        raise ValidationError("No input data provided")

    if 'display_name' in data or 'name' in data:
        user.display_name = data.get('display_name', data.get('name'))
    if 'mobile' in data:
        user.mobile = data['mobile']
    if 'email' in data:
        user.email = data['email']
    if 'role' in data:
        user.role = parse_role(data['role'])
    if 'is_active' in data:
        user.is_active = parse_is_active(data['is_active'])
    if 'password' in data:
        user.set_password(parse_password(data['password']))

    db.session.commit()
    log_event("USER_UPDATED", username=current_user.username, ip=request.remote_addr,
              description=user.username)
    return jsonify({"success": True, "message": "User updated", "user": user.to_dict()}), 200


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@jwt_required()
@permission_required(Action.manage_users)
def delete_user(user_id):
    user = get_user_or_404(user_id)

    if user.username == current_user.username:
        raise Conflict("You cannot delete your own account")

    username = user.username
    Assignment.query.filter_by(teacher_username=username).delete()
    db.session.delete(user)
    db.session.commit()

    log_event("USER_DELETED", username=current_user.username, ip=request.remote_addr,
              description=username)
    return jsonify({"success": True, "message": "User deleted"}), 200
