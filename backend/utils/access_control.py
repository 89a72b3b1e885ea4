import enum
from gfm.errors import Forbidden
from gfm.models import Assignment, Batch, RoleEnum


class Action(enum.Enum):
    manage_users = "manage_users"
    manage_batches = "manage_batches"
    manage_students = "manage_students"
    manage_assignments = "manage_assignments"
    view_roster = "view_roster"
    mark_attendance = "mark_attendance"
    view_attendance = "view_attendance"
    create_followup = "create_followup"
    view_followups = "view_followups"
    view_reports = "view_reports"


PERMISSIONS = {
    RoleEnum.admin: frozenset(Action),
    RoleEnum.attendance_teacher: frozenset({
        Action.view_roster,
        Action.mark_attendance,
        Action.view_attendance,
        Action.create_followup,
        Action.view_followups,
    }),
    RoleEnum.batch_teacher: frozenset({
        Action.view_roster,
        Action.view_attendance,
        Action.view_followups,
        Action.view_reports,
    }),
}


def _coerce(enum_class, value):
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        return None


def can(role, action):
    """
    Returns True when ``role`` may perform ``action``.
    Accepts enum members or their string values; anything unknown is denied.
    """
    role = _coerce(RoleEnum, role)
    action = _coerce(Action, action)
    if role is None or action is None:
        return False
    return action in PERMISSIONS.get(role, frozenset())


def get_assigned_batch_ids(user):
    rows = Assignment.query.with_entities(Assignment.batch_id).filter_by(
        teacher_username=user.username
    ).all()
    return sorted({row.batch_id for row in rows})


def get_allowed_batch_ids(user, requested_ids=None):
    """
    Returns the list of batch ids the user may read or act on.
    - Admins can access every batch, or exactly the requested ones.
    - Teachers are restricted to the batches they are assigned to.
    - Raises Forbidden when a requested batch is outside the user's scope.
    """
    if not user:
        raise ValueError("No user provided")

    if isinstance(requested_ids, int):
        requested_ids = [requested_ids]
    elif requested_ids is None:
        requested_ids = []
    requested_ids = [int(batch_id) for batch_id in requested_ids]

    if user.role == RoleEnum.admin:
        return requested_ids or [batch.id for batch in Batch.query.order_by(Batch.id).all()]

    assigned = get_assigned_batch_ids(user)
    if not requested_ids:
        return assigned

    if any(batch_id not in assigned for batch_id in requested_ids):
        raise Forbidden("Access denied to one or more requested batches")

    return requested_ids


def ensure_batch_access(user, batch_id):
    get_allowed_batch_ids(user, [batch_id])
