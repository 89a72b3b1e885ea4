from functools import wraps
from flask_jwt_extended import current_user
from gfm.errors import Forbidden, Unauthenticated
from utils.access_control import can


def permission_required(action):
    """
    Restrict access to users whose role grants ``action``.
    Must sit below @jwt_required() so the token has already been verified.
    Usage: @permission_required(Action.mark_attendance)
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_user
            if not user:
                raise Unauthenticated("User not found")

            if not can(user.role, action):
                raise Forbidden()

            return fn(*args, **kwargs)
        return wrapper
    return decorator
