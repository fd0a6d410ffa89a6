import uuid


def test_create_and_fetch_user(client):
    response = client.post("/api/v1/users", json={"name": "Linus", "email": "linus@example.com"})
    assert response.status_code == 201
    user = response.json()
    assert user["role"] == "USER"
    assert user["image"] is None

    fetched = client.get(f"/api/v1/users/{user['id']}").json()
    assert fetched == user


def test_duplicate_email_is_rejected(client, make_user):
    make_user(email="dup@example.com")
    response = client.post("/api/v1/users", json={"name": "Again", "email": "dup@example.com"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "EMAIL_EXISTS"


def test_invalid_email(client):
    response = client.post("/api/v1/users", json={"name": "Bad", "email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "email"


def test_list_users_with_email_filter(client, make_user):
    make_user(name="One", email="one@example.com")
    make_user(name="Two", email="two@example.com", role="ADMIN")

    assert [u["name"] for u in client.get("/api/v1/users").json()] == ["One", "Two"]
    filtered = client.get("/api/v1/users", params={"email": "two@example.com"}).json()
    assert [u["role"] for u in filtered] == ["ADMIN"]


def test_get_missing_user(client):
    response = client.get(f"/api/v1/users/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["error_code"] == "USER_NOT_FOUND"
