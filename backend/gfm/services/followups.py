from sqlalchemy.exc import IntegrityError
from gfm.errors import Conflict, NotFound, ValidationError
from gfm.extensions import db
from gfm.models import AttendanceRecord, FollowUp, Student
from utils.access_control import ensure_batch_access


def create_followup(user, attendance_id, reason, proof_file=None):
    from gfm.routes.uploads import remove_file, save_file

    try:
        attendance_id = int(attendance_id)
    except (TypeError, ValueError):
        raise ValidationError("attendance_id must be an integer")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Missing reason")

    attendance = db.session.get(AttendanceRecord, attendance_id)
    if not attendance:
        raise NotFound("Attendance record not found")
    ensure_batch_access(user, attendance.batch_id)

    if FollowUp.query.filter_by(attendance_id=attendance_id).first():
        raise Conflict("Follow-up already exists for this attendance record")

    proof_path = save_file(proof_file, "followups") if proof_file else None
    followup = FollowUp(
        attendance_id=attendance_id,
        reason=reason,
        proof_path=proof_path,
        proof_filename=proof_file.filename if proof_path else None,
        created_by=user.username,
    )
    db.session.add(followup)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        remove_file(proof_path)
        raise Conflict("Follow-up already exists for this attendance record")

    return followup


def get_followup(user, followup_id):
    followup = db.session.get(FollowUp, followup_id)
    if not followup:
        raise NotFound("Follow-up not found")
    ensure_batch_access(user, followup.attendance.batch_id)
    return followup


def list_for_student(user, prn):
    student = Student.query.filter_by(prn=prn).first()
    if not student:
        raise NotFound("Student not found")
    ensure_batch_access(user, student.batch_id)

    return (
        FollowUp.query.join(AttendanceRecord)
        .filter(AttendanceRecord.student_prn == prn)
        .order_by(FollowUp.timestamp.desc(), FollowUp.id.desc())
        .all()
    )
