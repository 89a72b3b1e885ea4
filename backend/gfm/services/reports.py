"""Read-only daily and range reports over the attendance ledger."""
from io import StringIO
import pandas as pd
from gfm.errors import ValidationError
from gfm.extensions import db
from gfm.models import AttendanceRecord, AttendanceStatus, Batch, Student, User
from utils.access_control import get_allowed_batch_ids

CSV_COLUMNS = [
    "date", "student_prn", "student_name", "batch_name", "status", "teacher_name",
]


def _report_rows(user, start, end, batch_id=None):
    batch_ids = get_allowed_batch_ids(user, [batch_id] if batch_id else None)

    rows = (
        db.session.query(AttendanceRecord, Student, Batch, User)
        .join(Student, Student.prn == AttendanceRecord.student_prn)
        .join(Batch, Batch.id == AttendanceRecord.batch_id)
        .outerjoin(User, User.username == AttendanceRecord.recorded_by)
        .filter(
            AttendanceRecord.batch_id.in_(batch_ids),
            AttendanceRecord.date >= start,
            AttendanceRecord.date <= end,
        )
        .order_by(AttendanceRecord.date, AttendanceRecord.student_prn)
        .all()
    )

    return [
        {
            "attendance_id": record.id,
            "date": record.date.isoformat(),
            "student_prn": student.prn,
            "student_name": student.name,
            "student_mobile": student.mobile,
            "batch_id": batch.id,
            "batch_name": batch.name,
            "status": record.status.value,
            "recorded_by": record.recorded_by,
            "teacher_name": (teacher.display_name or teacher.username) if teacher else record.recorded_by,
        }
        for record, student, batch, teacher in rows
    ]


def summarize(rows):
    present = sum(1 for row in rows if row["status"] == AttendanceStatus.Present.value)
    absent = sum(1 for row in rows if row["status"] == AttendanceStatus.Absent.value)
    return {
        "total": len(rows),
        "present": present,
        "absent": absent,
        "students": len({row["student_prn"] for row in rows}),
    }


def daily_report(user, day, batch_id=None):
    rows = _report_rows(user, day, day, batch_id)
    return {
        "date": day.isoformat(),
        "attendance": rows,
        "summary": summarize(rows),
    }


def weekly_report(user, start, end, batch_id=None):
    if start > end:
        raise ValidationError("start must be on or before end")

    rows = _report_rows(user, start, end, batch_id)
    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "attendance": rows,
        "summary": summarize(rows),
    }


def rows_to_csv(rows):
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    buffer = StringIO()
    df.to_csv(buffer, index=False)
    return buffer.getvalue()
