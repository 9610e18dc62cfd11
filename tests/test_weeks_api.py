URL = "/api/weeks"


def create_week(client, week_id="W1", **overrides):
    payload = {
        "week_id": week_id,
        "title": "Week 1",
        "start_date": "2024-09-02",
        "description": "Introduction",
        "links": ["https://example.org/week1"],
    }
    payload.update(overrides)
    return client.post(URL, json=payload)


def test_create_returns_stored_week(client):
    response = create_week(client)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["week_id"] == "W1"
    assert data["start_date"] == "2024-09-02"
    assert data["links"] == ["https://example.org/week1"]
    assert data["updated_at"] is not None


def test_invalid_start_date(client):
    response = create_week(client, start_date="2024-9-2")
    assert response.status_code == 400


def test_duplicate_week_id(client):
    create_week(client)
    assert create_week(client, title="Again").status_code == 409


def test_default_order_is_by_start_date(client):
    create_week(client, "W2", title="Week 2", start_date="2024-09-09")
    create_week(client, "W1", title="Week 1", start_date="2024-09-02")
    assert [w["week_id"] for w in client.get(URL).json()["data"]] == ["W1", "W2"]
    descending = client.get(URL, params={"sort": "start_date", "order": "desc"}).json()["data"]
    assert [w["week_id"] for w in descending] == ["W2", "W1"]


def test_update_returns_row(client):
    create_week(client)
    response = client.put(URL, json={"week_id": "W1", "title": "Orientation", "links": []})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Orientation"
    assert data["links"] == []
    assert data["description"] == "Introduction"


def test_update_missing_week(client):
    response = client.put(URL, json={"week_id": "W9", "title": "Nope"})
    assert response.status_code == 404


def test_comments_and_cascade(client):
    create_week(client)
    response = client.post(URL, params={"action": "comment"}, json={"week_id": "W1", "author": "Ann", "text": "Slides?"})
    assert response.status_code == 201
    comments = client.get(URL, params={"action": "comments", "week_id": "W1"}).json()["data"]
    assert [c["text"] for c in comments] == ["Slides?"]

    response = client.delete(URL, params={"week_id": "W1"})
    assert response.status_code == 200
    assert client.get(URL, params={"action": "comments", "week_id": "W1"}).json()["data"] == []


def test_comment_on_missing_week(client):
    response = client.post(URL, params={"action": "comment"}, json={"week_id": "W9", "author": "Ann", "text": "Hi"})
    assert response.status_code == 404
