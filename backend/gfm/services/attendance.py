"""Attendance ledger: batch upsert keyed on (student PRN, day) and the edit lock."""
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from gfm.errors import Forbidden, NotFound, RecordLocked, ValidationError
from gfm.extensions import db
from gfm.models import AttendanceRecord, AttendanceStatus, RoleEnum, Student, utcnow
from gfm.models.AttendanceRecord import DEFAULT_LOCK_HOURS
from utils.access_control import ensure_batch_access, get_allowed_batch_ids
from utils.dates import parse_day

CREATED = "created"
UPDATED = "updated"
REJECTED_LOCKED = "rejected_locked"
REJECTED_DUPLICATE = "rejected_duplicate"
REJECTED_NOT_FOUND = "rejected_not_found"
REJECTED_INVALID = "rejected_invalid"

OUTCOMES = (CREATED, UPDATED, REJECTED_LOCKED, REJECTED_DUPLICATE, REJECTED_NOT_FOUND, REJECTED_INVALID)


def lock_hours():
    return int(current_app.config.get("ATTENDANCE_LOCK_HOURS", DEFAULT_LOCK_HOURS))


def parse_status(value):
    if isinstance(value, AttendanceStatus):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError("Missing status")
    try:
        return AttendanceStatus(value.strip().capitalize())
    except ValueError:
        raise ValidationError("Invalid status, use Present or Absent")


def _prepare(records, default_date):
    prepared = []
    for raw in records:
        if not isinstance(raw, dict):
            prepared.append({"student_prn": None, "date": None, "error": "Record must be an object"})
            continue

        prn = raw.get("student_prn") or raw.get("studentPrn") or raw.get("prn")
        prn = str(prn).strip() if prn is not None else ""
        item = {"student_prn": prn or None, "date": None, "error": None}
        try:
            if not prn:
                raise ValidationError("Missing student_prn")
            item["date"] = parse_day(raw.get("date") or default_date)
            item["status"] = parse_status(raw.get("status"))
        except ValidationError as e:
            item["error"] = e.message
        prepared.append(item)
    return prepared


def _apply_update(record, status, user, now):
    if record.is_locked(now=now, lock_hours=lock_hours()):
        return REJECTED_LOCKED
    record.status = status
    record.updated_at = now
    record.recorded_by = user.username
    db.session.commit()
    return UPDATED


def _upsert(student, day, status, user, now):
    record = AttendanceRecord.query.filter_by(student_prn=student.prn, date=day).first()
    if record is None:
        record = AttendanceRecord(
            student_prn=student.prn,
            batch_id=student.batch_id,
            date=day,
            status=status,
            recorded_by=user.username,
            created_at=now,
        )
        db.session.add(record)
        try:
            db.session.commit()
            return CREATED, record
        except IntegrityError:
            # Another writer created the same (student, day) first
            db.session.rollback()
            record = AttendanceRecord.query.filter_by(student_prn=student.prn, date=day).first()
            if record is None:
                raise

    return _apply_update(record, status, user, now), record


def _existing_batch_ids(prepared):
    """Batches of records already stored for the well-formed (prn, day) pairs."""
    pairs = {(item["student_prn"], item["date"]) for item in prepared if not item["error"]}
    if not pairs:
        return set()

    rows = (
        AttendanceRecord.query
        .with_entities(AttendanceRecord.student_prn, AttendanceRecord.date, AttendanceRecord.batch_id)
        .filter(
            AttendanceRecord.student_prn.in_({prn for prn, _ in pairs}),
            AttendanceRecord.date.in_({day for _, day in pairs}),
        )
        .all()
    )
    return {row.batch_id for row in rows if (row.student_prn, row.date) in pairs}


def mark_attendance(user, records, default_date=None, now=None):
    """
    Upserts one attendance record per (student_prn, date, status) tuple.

    Every tuple gets its own outcome; a locked or malformed tuple never stops
    the rest of the batch. Raises Forbidden, before anything is written, when
    any referenced student, or any record about to be overwritten, sits in a
    batch outside the caller's scope. A record keeps the batch it was taken
    in even after its student moves.
    """
    if not isinstance(records, list) or not records:
        raise ValidationError("records must be a non-empty list")

    now = now or utcnow()
    prepared = _prepare(records, default_date)

    prns = {item["student_prn"] for item in prepared if item["student_prn"]}
    students = {s.prn: s for s in Student.query.filter(Student.prn.in_(prns)).all()} if prns else {}

    if user.role != RoleEnum.admin:
        allowed = set(get_allowed_batch_ids(user))
        touched = {s.batch_id for s in students.values()} | _existing_batch_ids(prepared)
        outside = sorted(touched - allowed)
        if outside:
            raise Forbidden("Not assigned to batch(es): " + ", ".join(str(b) for b in outside))

    results = []
    summary = {outcome: 0 for outcome in OUTCOMES}
    seen = set()

    for item in prepared:
        result = {
            "student_prn": item["student_prn"],
            "date": item["date"].isoformat() if item["date"] else None,
        }
        student = students.get(item["student_prn"])

        if item["error"]:
            result.update(outcome=REJECTED_INVALID, message=item["error"])
        elif student is None:
            result.update(outcome=REJECTED_NOT_FOUND, message="Student not found")
        elif (student.prn, item["date"]) in seen:
            result.update(outcome=REJECTED_DUPLICATE, message="Repeated in this request")
        else:
            seen.add((student.prn, item["date"]))
            outcome, record = _upsert(student, item["date"], item["status"], user, now)
            result.update(outcome=outcome, attendance_id=record.id)
            if outcome == REJECTED_LOCKED:
                result["message"] = "Attendance record is locked"

        summary[result["outcome"]] += 1
        results.append(result)

    return {"results": results, "summary": summary}


def get_record(user, attendance_id):
    record = db.session.get(AttendanceRecord, attendance_id)
    if not record:
        raise NotFound("Attendance record not found")
    ensure_batch_access(user, record.batch_id)
    return record


def update_attendance(user, attendance_id, status=None, proof_file=None, now=None):
    from gfm.routes.uploads import remove_file, save_file

    now = now or utcnow()
    record = get_record(user, attendance_id)

    if status is None and not proof_file:
        raise ValidationError("Nothing to update: provide status or proof")
    new_status = parse_status(status) if status is not None else None

    if record.is_locked(now=now, lock_hours=lock_hours()):
        raise RecordLocked()

    proof_path = save_file(proof_file, "attendance") if proof_file else None
    if proof_path:
        record.proof_path = proof_path
    if new_status is not None:
        record.status = new_status
    record.updated_at = now
    record.recorded_by = user.username
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        remove_file(proof_path)
        raise
    return record


def _scoped_query(user, batch_id=None):
    batch_ids = get_allowed_batch_ids(user, [batch_id] if batch_id else None)
    return (
        db.session.query(AttendanceRecord, Student)
        .join(Student, Student.prn == AttendanceRecord.student_prn)
        .filter(AttendanceRecord.batch_id.in_(batch_ids))
    )


def serialize_row(record, student):
    data = record.to_dict(lock_hours=lock_hours())
    data["student_name"] = student.name
    data["student_mobile"] = student.mobile
    return data


def list_for_date(user, day, batch_id=None):
    rows = (
        _scoped_query(user, batch_id)
        .filter(AttendanceRecord.date == day)
        .order_by(AttendanceRecord.date, AttendanceRecord.student_prn)
        .all()
    )
    return [serialize_row(record, student) for record, student in rows]


def list_for_student(user, prn):
    student = Student.query.filter_by(prn=prn).first()
    if not student:
        raise NotFound("Student not found")
    ensure_batch_access(user, student.batch_id)

    records = (
        AttendanceRecord.query.filter_by(student_prn=prn)
        .order_by(AttendanceRecord.date.desc())
        .all()
    )
    return student, [serialize_row(record, student) for record in records]
