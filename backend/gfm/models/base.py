from datetime import datetime, timezone
import enum


def utcnow():
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RoleEnum(enum.Enum):
    admin = "admin"
    attendance_teacher = "attendance_teacher"
    batch_teacher = "batch_teacher"


class AttendanceStatus(enum.Enum):
    Present = "Present"
    Absent = "Absent"


TEACHER_ROLES = {RoleEnum.attendance_teacher, RoleEnum.batch_teacher}
