from io import BytesIO
import pandas as pd
from sqlalchemy.exc import IntegrityError
from gfm.errors import Conflict, NotFound, ValidationError
from gfm.extensions import db
from gfm.models import Batch, Student

# Accepted spellings for each column, first match wins
FIELD_ALIASES = {
    "prn": ("prn", "PRN"),
    "name": ("name", "Name"),
    "mobile": ("mobile", "Mobile"),
    "parent_mobile": ("parent_mobile", "parentMobile", "Parent Mobile"),
    "email": ("email", "Email"),
    "batch_id": ("batch_id", "batchId"),
    "batch_name": ("batch_name", "batch", "Batch"),
}

IMPORT_EXTENSIONS = {"csv", "xls", "xlsx"}


def _pick(data, field):
    for key in FIELD_ALIASES[field]:
        value = data.get(key)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return None


def _resolve_batch_id(data, batches_by_name=None):
    batch_id = _pick(data, "batch_id")
    if batch_id:
        try:
            batch_id = int(float(batch_id))
        except ValueError:
            raise ValidationError("batch_id must be an integer")
        if not db.session.get(Batch, batch_id):
            raise NotFound(f"Batch {batch_id} not found")
        return batch_id

    batch_name = _pick(data, "batch_name")
    if batch_name:
        if batches_by_name is not None and batch_name in batches_by_name:
            return batches_by_name[batch_name]
        batch = Batch.query.filter_by(name=batch_name).first()
        if not batch:
            raise NotFound(f"Batch '{batch_name}' not found")
        return batch.id

    raise ValidationError("Missing required fields: ['batch_id']")


def build_student(data, batches_by_name=None):
    values = {field: _pick(data, field) for field in Student.REQUIRED_FIELDS if field != "batch_id"}
    missing = [field for field, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Missing required fields: {missing}")

    values["batch_id"] = _resolve_batch_id(data, batches_by_name)
    return Student(**values)


def create_student(data):
    student = build_student(data)
    if Student.query.filter_by(prn=student.prn).first():
        raise Conflict("PRN already exists")

    db.session.add(student)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("PRN already exists")
    return student


def update_student(student, data):
    for field in ("name", "mobile", "parent_mobile", "email"):
        value = _pick(data, field)
        if value is not None:
            setattr(student, field, value)

    if _pick(data, "batch_id") or _pick(data, "batch_name"):
        student.batch_id = _resolve_batch_id(data)

    db.session.commit()
    return student


def import_students(rows):
    """
    Inserts each row on its own so one bad row never rolls back the rest.
    Duplicate PRNs, against the store or earlier rows, are counted rather than raised.
    """
    imported = 0
    duplicates = 0
    errors = []
    batches_by_name = {b.name: b.id for b in Batch.query.all()}

    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            errors.append({"row": index, "message": "Row must be an object"})
            continue
        try:
            student = build_student(row, batches_by_name)
        except (ValidationError, NotFound) as e:
            errors.append({"row": index, "prn": _pick(row, "prn"), "message": e.message})
            continue

        db.session.add(student)
        try:
            db.session.commit()
            imported += 1
        except IntegrityError:
            db.session.rollback()
            duplicates += 1

    return {
        "imported": imported,
        "duplicates": duplicates,
        "invalid": len(errors),
        "errors": errors,
    }


def read_import_file(file):
    """Parses an uploaded CSV or Excel roster into a list of row dicts."""
    if not file or not file.filename or "." not in file.filename:
        raise ValidationError("Missing import file")

    ext = file.filename.rsplit('.', 1)[1].lower()
    if ext not in IMPORT_EXTENSIONS:
        raise ValidationError("Unsupported file format. Use CSV or Excel.")

    try:
        if ext == 'csv':
            df = pd.read_csv(file.stream, dtype=str)
        else:
            df = pd.read_excel(BytesIO(file.read()), dtype=str)
    except Exception as e:
        raise ValidationError(f"Failed to read file: {e}")

    df = df.fillna("")
    return df.to_dict(orient="records")
