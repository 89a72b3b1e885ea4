from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from gfm import create_app
from gfm.config import TestConfig
from gfm.extensions import db
from gfm.models import Assignment, Batch, RoleEnum, Student, User


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        AUDIT_LOG_FILE = str(tmp_path / "logs" / "audit.log")

    app = create_app(Config)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username, role="attendance_teacher", password="secret123", is_active=True, display_name=None):
        with app.app_context():
            user = User(
                username=username,
                role=RoleEnum(role),
                display_name=display_name or username.title(),
                is_active=is_active,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def make_batch(app):
    def _make(name):
        with app.app_context():
            batch = Batch(name=name)
            db.session.add(batch)
            db.session.commit()
            return batch.id
    return _make


@pytest.fixture
def make_student(app):
    def _make(prn, batch_id, name=None):
        with app.app_context():
            student = Student(
                prn=prn,
                name=name or f"Student {prn}",
                mobile="9000000000",
                parent_mobile="9000000001",
                email=f"{prn.lower()}@example.edu",
                batch_id=batch_id,
            )
            db.session.add(student)
            db.session.commit()
            return student.prn
    return _make


@pytest.fixture
def assign(app):
    def _assign(username, batch_id, role="attendance_teacher"):
        with app.app_context():
            assignment = Assignment(teacher_username=username, batch_id=batch_id, role=RoleEnum(role))
            db.session.add(assignment)
            db.session.commit()
            return assignment.id
    return _assign


@pytest.fixture
def headers_for(app):
    def _headers(username):
        with app.app_context():
            token = create_access_token(identity=username)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def roster(make_user, make_batch, make_student, assign):
    """
    Two batches:
      FY-A: students P001, P002; alice marks attendance, bob views reports
      FY-B: student P101; carol marks attendance
    """
    make_user("admin", role="admin", display_name="Administrator")
    make_user("alice", role="attendance_teacher", display_name="Alice Rao")
    make_user("bob", role="batch_teacher", display_name="Bob Iyer")
    make_user("carol", role="attendance_teacher", display_name="Carol Das")

    batch_a = make_batch("FY-A")
    batch_b = make_batch("FY-B")

    make_student("P001", batch_a, name="Asha")
    make_student("P002", batch_a, name="Bilal")
    make_student("P101", batch_b, name="Chitra")

    assign("alice", batch_a)
    assign("bob", batch_a, role="batch_teacher")
    assign("carol", batch_b)

    return SimpleNamespace(batch_a=batch_a, batch_b=batch_b)
