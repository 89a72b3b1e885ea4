from gfm.extensions import db


class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    prn = db.Column(db.String(40), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    mobile = db.Column(db.String(20), nullable=False)
    parent_mobile = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=False, index=True)

    batch = db.relationship('Batch', back_populates='students')
    attendance_records = db.relationship(
        'AttendanceRecord',
        back_populates='student',
        lazy=True,
        cascade="all, delete-orphan",
    )

    REQUIRED_FIELDS = ("prn", "name", "mobile", "parent_mobile", "email", "batch_id")

    def to_dict(self, include_batch=False):
        data = {
            "id": self.id,
            "prn": self.prn,
            "name": self.name,
            "mobile": self.mobile,
            "parent_mobile": self.parent_mobile,
            "email": self.email,
            "batch_id": self.batch_id,
        }
        if include_batch:
            data["batch"] = self.batch.to_dict() if self.batch else None
        return data
