import pytest

from gfm.errors import Forbidden
from gfm.extensions import db
from gfm.models import RoleEnum, User
from utils.access_control import Action, can, get_allowed_batch_ids


EXPECTED = {
    RoleEnum.admin: set(Action),
    RoleEnum.attendance_teacher: {
        Action.view_roster,
        Action.mark_attendance,
        Action.view_attendance,
        Action.create_followup,
        Action.view_followups,
    },
    RoleEnum.batch_teacher: {
        Action.view_roster,
        Action.view_attendance,
        Action.view_followups,
        Action.view_reports,
    },
}


@pytest.mark.parametrize("role", list(RoleEnum))
@pytest.mark.parametrize("action", list(Action))
def test_capability_matrix(role, action):
    assert can(role, action) is (action in EXPECTED[role])


def test_can_accepts_string_values():
    assert can("admin", "manage_users")
    assert can("batch_teacher", "view_reports")
    assert not can("batch_teacher", "mark_attendance")
    assert not can("attendance_teacher", "view_reports")


def test_unknown_role_or_action_is_denied():
    assert not can("janitor", Action.view_roster)
    assert not can(RoleEnum.admin, "launch_rockets")
    assert not can(None, Action.view_roster)


def _user(username):
    return User.query.filter_by(username=username).first()


def test_admin_sees_every_batch(app, roster):
    with app.app_context():
        assert get_allowed_batch_ids(_user("admin")) == [roster.batch_a, roster.batch_b]


def test_teacher_scope_is_limited_to_assignments(app, roster):
    with app.app_context():
        assert get_allowed_batch_ids(_user("alice")) == [roster.batch_a]
        assert get_allowed_batch_ids(_user("carol")) == [roster.batch_b]
        assert get_allowed_batch_ids(_user("alice"), [roster.batch_a]) == [roster.batch_a]


def test_teacher_requesting_other_batch_is_forbidden(app, roster):
    with app.app_context():
        with pytest.raises(Forbidden):
            get_allowed_batch_ids(_user("alice"), [roster.batch_b])


def test_unassigned_teacher_has_empty_scope(app, roster, make_user):
    make_user("dave", role="attendance_teacher")
    with app.app_context():
        assert get_allowed_batch_ids(_user("dave")) == []


def test_role_check_through_api(client, roster, headers_for):
    # batch teachers read rosters but cannot mark attendance
    response = client.get("/students", headers=headers_for("bob"))
    assert response.status_code == 200

    response = client.post(
        "/attendance",
        json={"records": [{"student_prn": "P001", "date": "2024-03-01", "status": "Present"}]},
        headers=headers_for("bob"),
    )
    assert response.status_code == 403
    assert response.get_json()["error"] == "forbidden"

    with client.application.app_context():
        assert db.session.execute(db.text("SELECT COUNT(*) FROM attendance_records")).scalar() == 0
