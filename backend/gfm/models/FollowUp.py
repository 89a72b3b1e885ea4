from gfm.extensions import db
from .base import utcnow


class FollowUp(db.Model):
    __tablename__ = 'followups'

    id = db.Column(db.Integer, primary_key=True)
    attendance_id = db.Column(
        db.Integer, db.ForeignKey('attendance_records.id'), nullable=False, unique=True
    )
    reason = db.Column(db.Text, nullable=False)
    proof_path = db.Column(db.String(255), nullable=True)
    proof_filename = db.Column(db.String(255), nullable=True)
    created_by = db.Column(db.String(80), nullable=True)
    timestamp = db.Column(db.DateTime, default=utcnow)

    attendance = db.relationship('AttendanceRecord', back_populates='followup')

    def to_dict(self, include_attendance=False):
        data = {
            "id": self.id,
            "attendance_id": self.attendance_id,
            "reason": self.reason,
            "proof_path": self.proof_path,
            "proof_filename": self.proof_filename,
            "created_by": self.created_by,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
        if include_attendance and self.attendance:
            data["student_prn"] = self.attendance.student_prn
            data["date"] = self.attendance.date.isoformat()
            data["status"] = self.attendance.status.value
        return data
