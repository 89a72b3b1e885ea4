from .User import User, TokenBlocklist
from .Batch import Batch
from .Student import Student
from .Assignment import Assignment
from .AttendanceRecord import AttendanceRecord
from .FollowUp import FollowUp
from .AuditLog import AuditLog
from .base import RoleEnum, AttendanceStatus, TEACHER_ROLES, utcnow
