from gfm.extensions import db
from .base import RoleEnum, utcnow


class Assignment(db.Model):
    __tablename__ = 'assignments'

    id = db.Column(db.Integer, primary_key=True)
    teacher_username = db.Column(db.String(80), nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=False)
    role = db.Column(db.Enum(RoleEnum), nullable=False, default=RoleEnum.attendance_teacher)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    batch = db.relationship('Batch', back_populates='assignments')

    __table_args__ = (
        db.UniqueConstraint('teacher_username', 'batch_id', name='uq_teacher_batch'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "teacher_username": self.teacher_username,
            "batch_id": self.batch_id,
            "batch_name": self.batch.name if self.batch else None,
            "role": self.role.value if self.role else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
