import os
import uuid
import magic
from flask import Blueprint, current_app, send_from_directory
from flask_jwt_extended import jwt_required, current_user
from werkzeug.utils import secure_filename
from gfm.errors import NotFound, ValidationError
from gfm.models import AttendanceRecord, FollowUp
from utils.access_control import ensure_batch_access

upload_bp = Blueprint('uploads', __name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'pdf'}
ALLOWED_MIME_TYPES = {
    'image/jpeg', 'image/png', 'image/gif', 'application/pdf'
}

def allowed_file(file):
    filename_ok = '.' in file.filename and file.filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS
    mime = magic.from_buffer(file.read(2048), mime=True)
    file.seek(0)
    return filename_ok and mime in ALLOWED_MIME_TYPES

def upload_root():
    return os.path.abspath(current_app.config.get('UPLOAD_FOLDER', 'uploads'))

def save_file(file, folder):
    """Stores an uploaded proof document and returns its reference, relative to UPLOAD_FOLDER."""
    if not file or not file.filename:
        return None
    if not allowed_file(file):
        raise ValidationError("Unsupported file type. Allowed: " + ", ".join(sorted(ALLOWED_EXTENSIONS)))

    filename = secure_filename(file.filename)
    unique_filename = f"{uuid.uuid4().hex}_{filename}"
    upload_folder = os.path.join(upload_root(), folder)
    os.makedirs(upload_folder, exist_ok=True)
    file.save(os.path.join(upload_folder, unique_filename))

    return f"{folder}/{unique_filename}"

def remove_file(reference):
    """Deletes a stored upload by reference; missing files are ignored."""
    if not reference:
        return
    path = os.path.join(upload_root(), reference)
    if os.path.isfile(path):
        os.remove(path)

def owning_batch_id(reference):
    """Batch of the attendance record a proof reference belongs to, or None."""
    record = AttendanceRecord.query.filter_by(proof_path=reference).first()
    if record:
        return record.batch_id
    followup = FollowUp.query.filter_by(proof_path=reference).first()
    if followup:
        return followup.attendance.batch_id
    return None


@upload_bp.route('/<path:reference>', methods=['GET'])
@jwt_required()
def serve_file(reference):
    root = upload_root()
    full_path = os.path.abspath(os.path.join(root, reference))
    if not full_path.startswith(root + os.sep) or not os.path.isfile(full_path):
        raise NotFound("File not found")

    batch_id = owning_batch_id(reference)
    if batch_id is None:
        raise NotFound("File not found")
    ensure_batch_access(current_user, batch_id)

    directory, filename = os.path.split(full_path)
    return send_from_directory(directory, filename)
