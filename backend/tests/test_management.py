from gfm.models import Assignment, Batch, User


def find_user_id(client, headers, username):
    users = client.get(f"/users?search={username}", headers=headers).get_json()["users"]
    return next(u["id"] for u in users if u["username"] == username)


# Users

def test_create_and_list_users(app, client, roster, headers_for):
    headers = headers_for("admin")
    response = client.post(
        "/users",
        json={"username": "frank", "password": "pw12345", "role": "batch_teacher", "display_name": "Frank"},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.get_json()["user"]["role"] == "batch_teacher"

    body = client.get("/users?role=batch_teacher", headers=headers).get_json()
    assert [u["username"] for u in body["users"]] == ["bob", "frank"]

    login = client.post("/auth/login", json={"username": "frank", "password": "pw12345"})
    assert login.status_code == 200


def test_create_user_validation(client, roster, headers_for):
    headers = headers_for("admin")

    response = client.post("/users", json={"username": "x"}, headers=headers)
    assert response.status_code == 400

    response = client.post("/users", json={"username": "gina", "password": "pw", "role": "principal"}, headers=headers)
    assert response.status_code == 400

    response = client.post("/users", json={"username": "alice", "password": "pw", "role": "admin"}, headers=headers)
    assert response.status_code == 409


def test_only_admin_manages_users(client, roster, headers_for):
    for username in ("alice", "bob"):
        assert client.get("/users", headers=headers_for(username)).status_code == 403


def test_update_user_password_and_role(client, roster, headers_for):
    headers = headers_for("admin")
    user_id = find_user_id(client, headers, "carol")

    response = client.put(f"/users/{user_id}", json={"password": "changed1", "role": "batch_teacher"}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["user"]["role"] == "batch_teacher"

    assert client.post("/auth/login", json={"username": "carol", "password": "secret123"}).status_code == 401
    assert client.post("/auth/login", json={"username": "carol", "password": "changed1"}).status_code == 200


def test_delete_user_removes_assignments(app, client, roster, headers_for):
    headers = headers_for("admin")
    user_id = find_user_id(client, headers, "carol")

    response = client.delete(f"/users/{user_id}", headers=headers)

    assert response.status_code == 200
    with app.app_context():
        assert User.query.filter_by(username="carol").first() is None
        assert Assignment.query.filter_by(teacher_username="carol").count() == 0


def test_admin_cannot_delete_self(client, roster, headers_for):
    headers = headers_for("admin")
    user_id = find_user_id(client, headers, "admin")

    response = client.delete(f"/users/{user_id}", headers=headers)
    assert response.status_code == 409


def test_unknown_user_is_not_found(client, roster, headers_for):
    assert client.get("/users/999", headers=headers_for("admin")).status_code == 404


# Batches

def test_list_batches_is_scoped(client, roster, headers_for):
    body = client.get("/batches", headers=headers_for("alice")).get_json()
    assert [b["name"] for b in body["batches"]] == ["FY-A"]
    assert body["batches"][0]["student_count"] == 2

    body = client.get("/batches", headers=headers_for("admin")).get_json()
    assert [b["name"] for b in body["batches"]] == ["FY-A", "FY-B"]


def test_get_batch_details(client, roster, headers_for):
    body = client.get(f"/batches/{roster.batch_a}", headers=headers_for("bob")).get_json()
    assert [s["prn"] for s in body["batch"]["students"]] == ["P001", "P002"]
    assert {a["teacher_username"] for a in body["batch"]["assignments"]} == {"alice", "bob"}

    assert client.get(f"/batches/{roster.batch_b}", headers=headers_for("bob")).status_code == 403


def test_batch_crud(app, client, roster, headers_for):
    headers = headers_for("admin")

    response = client.post("/batches", json={"name": "SY-A", "description": "Second year"}, headers=headers)
    assert response.status_code == 201
    batch_id = response.get_json()["batch"]["id"]

    assert client.post("/batches", json={"name": "SY-A"}, headers=headers).status_code == 409
    assert client.post("/batches", json={}, headers=headers).status_code == 400

    response = client.put(f"/batches/{batch_id}", json={"name": "SY-B"}, headers=headers)
    assert response.get_json()["batch"]["name"] == "SY-B"
    assert client.put(f"/batches/{batch_id}", json={"name": "FY-A"}, headers=headers).status_code == 409

    assert client.delete(f"/batches/{batch_id}", headers=headers).status_code == 200
    with app.app_context():
        assert Batch.query.filter_by(name="SY-B").first() is None


def test_batch_in_use_cannot_be_deleted(client, roster, headers_for):
    response = client.delete(f"/batches/{roster.batch_a}", headers=headers_for("admin"))
    assert response.status_code == 409


def test_teachers_cannot_manage_batches(client, roster, headers_for):
    assert client.post("/batches", json={"name": "X"}, headers=headers_for("alice")).status_code == 403


# Assignments

def test_assignment_grants_scope(client, roster, headers_for):
    admin = headers_for("admin")
    response = client.post(
        "/assignments", json={"teacher_username": "alice", "batch_id": roster.batch_b}, headers=admin
    )
    assert response.status_code == 201
    assert response.get_json()["assignment"]["batch_name"] == "FY-B"

    body = client.get("/students", headers=headers_for("alice")).get_json()
    assert [s["prn"] for s in body["students"]] == ["P001", "P002", "P101"]


def test_assignment_validation(client, roster, headers_for):
    admin = headers_for("admin")

    response = client.post("/assignments", json={"teacher_username": "alice", "batch_id": roster.batch_a}, headers=admin)
    assert response.status_code == 409

    response = client.post("/assignments", json={"teacher_username": "admin", "batch_id": roster.batch_a}, headers=admin)
    assert response.status_code == 400

    response = client.post("/assignments", json={"teacher_username": "ghost", "batch_id": roster.batch_a}, headers=admin)
    assert response.status_code == 404

    response = client.post("/assignments", json={"teacher_username": "alice", "batch_id": 999}, headers=admin)
    assert response.status_code == 404

    response = client.post("/assignments", json={"teacher_username": "alice"}, headers=admin)
    assert response.status_code == 400


def test_teacher_lists_only_own_assignments(client, roster, headers_for):
    body = client.get("/assignments?teacher_username=bob", headers=headers_for("alice")).get_json()
    assert [a["teacher_username"] for a in body["assignments"]] == ["alice"]

    body = client.get("/assignments", headers=headers_for("admin")).get_json()
    assert len(body["assignments"]) == 3


def test_removing_assignment_revokes_scope(client, roster, headers_for):
    admin = headers_for("admin")
    assignments = client.get("/assignments?teacher_username=alice", headers=admin).get_json()["assignments"]

    response = client.delete(f"/assignments/{assignments[0]['id']}", headers=admin)
    assert response.status_code == 200

    body = client.get("/students", headers=headers_for("alice")).get_json()
    assert body["students"] == []

    assert client.delete(f"/assignments/{assignments[0]['id']}", headers=admin).status_code == 404


def test_create_user_rejects_unusable_usernames(app, client, roster, headers_for):
    headers = headers_for("admin")

    for username in (12345, ["hank"], "ab", "has space"):
        response = client.post(
            "/users", json={"username": username, "password": "pw12345", "role": "batch_teacher"}, headers=headers
        )
        assert response.status_code == 400, username
        assert response.get_json()["error"] == "validation_error"

    with app.app_context():
        assert User.query.count() == 4


def test_is_active_must_be_a_boolean(client, roster, headers_for):
    headers = headers_for("admin")

    response = client.post(
        "/users",
        json={"username": "ivan", "password": "pw12345", "role": "batch_teacher", "is_active": "false"},
        headers=headers,
    )
    assert response.status_code == 400

    user_id = find_user_id(client, headers, "carol")
    response = client.put(f"/users/{user_id}", json={"is_active": "false"}, headers=headers)
    assert response.status_code == 400

    response = client.put(f"/users/{user_id}", json={"is_active": False}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["user"]["is_active"] is False
    assert client.post("/auth/login", json={"username": "carol", "password": "secret123"}).status_code == 401
