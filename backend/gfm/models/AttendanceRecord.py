from datetime import timedelta
from gfm.extensions import db
from .base import AttendanceStatus, utcnow

DEFAULT_LOCK_HOURS = 24


class AttendanceRecord(db.Model):
    __tablename__ = 'attendance_records'

    id = db.Column(db.Integer, primary_key=True)
    student_prn = db.Column(db.String(40), db.ForeignKey('students.prn'), nullable=False)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False)
    recorded_by = db.Column(db.String(80), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)
    proof_path = db.Column(db.String(255), nullable=True)

    student = db.relationship('Student', back_populates='attendance_records')
    batch = db.relationship('Batch')
    followup = db.relationship(
        'FollowUp',
        back_populates='attendance',
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint('student_prn', 'date', name='uq_student_date'),
    )

    def is_locked(self, now=None, lock_hours=DEFAULT_LOCK_HOURS):
        """True once ``lock_hours`` have elapsed since the record was created."""
        now = now or utcnow()
        return now - self.created_at >= timedelta(hours=lock_hours)

    def to_dict(self, now=None, lock_hours=DEFAULT_LOCK_HOURS):
        return {
            "id": self.id,
            "student_prn": self.student_prn,
            "batch_id": self.batch_id,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "recorded_by": self.recorded_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "proof_path": self.proof_path,
            "locked": self.is_locked(now=now, lock_hours=lock_hours),
            "has_followup": self.followup is not None,
        }
