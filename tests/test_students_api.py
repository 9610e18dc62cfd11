import asyncio

from crud_ops import ResourceHandler, verify_password
from models import Student

URL = "/api/students"

ANN = {"student_id": "S100", "name": "Ann Lee", "email": "ann@x.com", "password": "password123"}


def create(client, **overrides):
    return client.post(URL, json={**ANN, **overrides})


def test_create_and_fetch_student(client):
    response = create(client)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert isinstance(body["id"], int)

    response = client.get(URL, params={"student_id": "S100"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["student_id"] == "S100"
    assert data["name"] == "Ann Lee"
    assert data["email"] == "ann@x.com"
    assert "password" not in data
    assert "password_hash" not in data


def test_password_is_stored_hashed(client, db):
    create(client)
    student = db.query(Student).filter(Student.student_id == "S100").one()
    assert student.password_hash != "password123"
    assert verify_password("password123", student.password_hash)


def test_duplicate_student_id_conflicts(client):
    create(client)
    response = create(client, email="other@x.com")
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "student_id already exists."}


def test_duplicate_email_conflicts(client):
    create(client)
    response = create(client, student_id="S101")
    assert response.status_code == 409


def test_missing_fields_are_listed(client):
    response = client.post(URL, json={"student_id": "S1"})
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: name, email, password"


def test_invalid_email_is_rejected(client):
    response = create(client, email="ann-at-x")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format."


def test_name_is_sanitized(client):
    create(client, name="<b>Ann</b> & Co")
    data = client.get(URL, params={"student_id": "S100"}).json()["data"]
    assert data["name"] == "Ann &amp; Co"


def test_unknown_student_is_not_found(client):
    response = client.get(URL, params={"student_id": "S404"})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Student not found."}


def test_list_search_and_sort(client):
    create(client)
    create(client, student_id="S200", name="Bob Stone", email="bob@y.org")
    create(client, student_id="S300", name="Cid Lee", email="cid@y.org")

    names = [s["name"] for s in client.get(URL).json()["data"]]
    assert names == ["Ann Lee", "Bob Stone", "Cid Lee"]

    names = [s["name"] for s in client.get(URL, params={"sort": "student_id", "order": "desc"}).json()["data"]]
    assert names == ["Cid Lee", "Bob Stone", "Ann Lee"]

    names = [s["name"] for s in client.get(URL, params={"search": "lee"}).json()["data"]]
    assert names == ["Ann Lee", "Cid Lee"]


def test_unknown_sort_falls_back_to_name(client):
    create(client, student_id="S2", name="Zed", email="zed@x.com")
    create(client)
    response = client.get(URL, params={"sort": "password_hash", "order": "bogus"})
    assert response.status_code == 200
    assert [s["name"] for s in response.json()["data"]] == ["Ann Lee", "Zed"]


def test_update_student(client):
    create(client)
    response = client.put(URL, json={"student_id": "S100", "name": "Ann Smith"})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Ann Smith"
    assert response.json()["data"]["email"] == "ann@x.com"


def test_update_without_fields_leaves_row_unchanged(client):
    create(client)
    response = client.put(URL, json={"student_id": "S100", "password": "sneaky123"})
    assert response.status_code == 400
    assert response.json()["message"] == "No fields to update."
    assert client.get(URL, params={"student_id": "S100"}).json()["data"]["name"] == "Ann Lee"


def test_update_email_must_stay_unique(client):
    create(client)
    create(client, student_id="S200", email="bob@y.org")
    response = client.put(URL, json={"student_id": "S200", "email": "ann@x.com"})
    assert response.status_code == 409

    response = client.put(URL, json={"student_id": "S100", "email": "ann@x.com"})
    assert response.status_code == 200


def test_update_unknown_student(client):
    response = client.put(URL, json={"student_id": "S404", "name": "Nobody"})
    assert response.status_code == 404


def test_delete_student(client):
    create(client)
    response = client.delete(URL, params={"student_id": "S100"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get(URL, params={"student_id": "S100"}).status_code == 404


def test_delete_key_from_body(client):
    create(client)
    response = client.request("DELETE", URL, json={"student_id": "S100"})
    assert response.status_code == 200


def test_change_password_action(client, db):
    create(client)
    body = {"student_id": "S100", "current_password": "password123", "new_password": "newpassword1"}
    response = client.post(URL, params={"action": "change_password"}, json=body)
    assert response.status_code == 200
    assert response.json()["message"] == "Password changed successfully."

    db.expire_all()
    stored = db.query(Student).filter(Student.student_id == "S100").one().password_hash
    assert verify_password("newpassword1", stored)


def test_change_password_wrong_current(client, db):
    create(client)
    before = db.query(Student).filter(Student.student_id == "S100").one().password_hash
    body = {"student_id": "S100", "current_password": "wrongpass1", "new_password": "newpassword1"}
    response = client.post(URL, params={"action": "change_password"}, json=body)
    assert response.status_code == 401
    assert response.json()["message"] == "Current password is incorrect."

    db.expire_all()
    assert db.query(Student).filter(Student.student_id == "S100").one().password_hash == before


def test_change_password_too_short(client):
    create(client)
    body = {"student_id": "S100", "current_password": "password123", "new_password": "short"}
    response = client.post(URL, params={"action": "change_password"}, json=body)
    assert response.status_code == 400
    assert response.json()["message"] == "New password must be at least 8 characters long."


def test_options_preflight(client):
    response = client.options(URL)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Preflight OK"}


def test_unsupported_method(client):
    response = client.patch(URL, json={})
    assert response.status_code == 405
    assert response.json()["success"] is False


def test_unknown_action(client):
    response = client.post(URL, params={"action": "promote"}, json=ANN)
    assert response.status_code == 400


def test_invalid_json_body(client):
    response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid JSON body."}


def test_non_object_body(client):
    response = client.post(URL, json=["S100"])
    assert response.status_code == 400


def test_blank_key_lists_students(client):
    create(client)
    response = client.get(URL, params={"student_id": "  "})
    assert response.status_code == 200
    assert [s["student_id"] for s in response.json()["data"]] == ["S100"]


def test_update_conflict_at_commit_is_reported(client, monkeypatch):
    create(client)
    create(client, student_id="S200", email="bob@y.org")
    # a concurrent writer can take the email between the check and the commit
    monkeypatch.setattr(ResourceHandler, "_check_unique", lambda self, *args, **kwargs: None)
    response = client.put(URL, json={"student_id": "S200", "email": "ann@x.com"})
    assert response.status_code == 409
    assert response.json()["success"] is False
    assert client.get(URL, params={"student_id": "S200"}).json()["data"]["email"] == "bob@y.org"


def test_create_hashes_off_the_event_loop(client, monkeypatch):
    seen = []
    original = ResourceHandler.create

    def recording_create(self, data):
        try:
            asyncio.get_running_loop()
            seen.append("event loop")
        except RuntimeError:
            seen.append("worker thread")
        return original(self, data)

    monkeypatch.setattr(ResourceHandler, "create", recording_create)
    assert create(client).status_code == 201
    assert seen == ["worker thread"]
