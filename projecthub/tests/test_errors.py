from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from projecthub.api.v1.crud import comment as crud_comment
from projecthub.core.exceptions import field_errors


def test_store_failure_is_a_generic_500(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(crud_comment, "get_comments", broken)
    response = client.get("/api/v1/comments")
    assert response.status_code == 500
    assert response.json() == {"message": "Database error occurred", "error_code": "DATABASE_ERROR"}


def test_unexpected_failure_does_not_leak_details(app, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(crud_comment, "get_comment_with_relations", broken)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/v1/comments/anything")
    assert response.status_code == 500
    assert "secret" not in response.text
    assert response.json()["error_code"] == "INTERNAL_ERROR"


def test_malformed_body_is_400(client):
    response = client.post("/api/v1/comments", content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    assert [e["field"] for e in response.json()["errors"]] == ["body"]


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    ready = client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["services"] == {"database": "ok"}


def test_field_errors_names_body_for_invalid_json():
    errors = field_errors([
        {"type": "json_invalid", "loc": ("body", 1), "msg": "JSON decode error"},
        {"type": "missing", "loc": ("body", "title"), "msg": "Field required"},
    ])
    assert errors == [
        {"field": "body", "message": "JSON decode error"},
        {"field": "title", "message": "Field required"},
    ]
