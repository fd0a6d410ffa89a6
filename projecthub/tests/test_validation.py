import uuid

import pytest

from projecthub.core.exceptions import ValidationError
from projecthub.schemas.comment import CommentPayload
from projecthub.schemas.project import ProjectPayload, parse_date
from projecthub.schemas.validation import provided_fields, validate_payload


def _fields(response):
    assert response.status_code == 400, response.text
    body = response.json()
    assert body["error_code"] == "VALIDATION_ERROR"
    return {error["field"] for error in body["errors"]}


@pytest.mark.parametrize("title", ["", "x" * 201])
def test_comment_title_length(client, title):
    response = client.post("/api/v1/comments", json={"title": title, "content": "ok", "authorId": None})
    assert _fields(response) == {"title"}


def test_comment_title_at_limit_is_accepted(client):
    response = client.post("/api/v1/comments", json={"title": "x" * 200, "content": "ok", "authorId": None})
    assert response.status_code == 201


def test_comment_empty_content(client):
    response = client.post("/api/v1/comments", json={"title": "Q", "content": "", "authorId": None})
    assert _fields(response) == {"content"}


def test_comment_errors_are_aggregated(client):
    response = client.post("/api/v1/comments", json={"title": "", "content": "", "projectId": "nope"})
    assert _fields(response) == {"title", "content", "projectId", "authorId"}


def test_comment_ids_must_be_uuids_except_author(client):
    response = client.post("/api/v1/comments", json={
        "title": "Q", "content": "ok", "authorId": None, "parentCommentId": "123",
    })
    assert _fields(response) == {"parentCommentId"}

    # authorId is opaque: it fails on existence, not on shape
    response = client.post("/api/v1/comments", json={"title": "Q", "content": "ok", "authorId": "user_2abc"})
    assert response.status_code == 404


def test_validate_payload_raises_with_every_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_payload(CommentPayload, {"title": "", "content": ""})
    assert {e["field"] for e in exc_info.value.errors} == {"title", "content", "authorId"}
    assert exc_info.value.status_code == 400


def test_validate_payload_normalises_ids():
    project_id = str(uuid.uuid4())
    payload = validate_payload(CommentPayload, {
        "title": "Q", "content": "ok", "authorId": "", "projectId": project_id.upper(),
    })
    assert payload.project_id == project_id
    assert payload.author_id is None
    assert provided_fields(payload) == {"title", "content", "author_id", "project_id"}


def test_validate_payload_passes_models_through():
    payload = CommentPayload(title="Q", content="ok", author_id=None)
    assert validate_payload(CommentPayload, payload) is payload


@pytest.mark.parametrize("priority", [0, 6, "3", 2.5, True])
def test_project_priority_is_strict_integer(priority):
    with pytest.raises(ValidationError) as exc_info:
        validate_payload(ProjectPayload, {"name": "P", "status": "TODO", "priority": priority})
    assert [e["field"] for e in exc_info.value.errors] == ["priority"]


def test_project_name_status_and_dates(client):
    response = client.post("/api/v1/projects", json={
        "name": "", "status": "PAUSED", "priority": 1, "startDate": "someday",
    })
    assert _fields(response) == {"name", "status", "startDate"}

    response = client.post("/api/v1/projects", json={"name": "x" * 101, "status": "TODO", "priority": 1})
    assert _fields(response) == {"name"}


def test_project_image_must_be_url_or_blank(client):
    response = client.post("/api/v1/projects", json={
        "name": "P", "status": "TODO", "priority": 1, "image": "not a url",
    })
    assert _fields(response) == {"image"}

    response = client.post("/api/v1/projects", json={
        "name": "P", "status": "TODO", "priority": 1, "image": "",
        "startDate": "2026-01-15", "endDate": "2026-03-01T12:00:00Z",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["image"] is None
    assert body["startDate"].startswith("2026-01-15")
    assert body["endDate"].startswith("2026-03-01T12:00:00")


@pytest.mark.parametrize("value, microsecond", [
    ("2026-03-01T12:00:00.5Z", 500000),
    ("2026-03-01T12:00:00.12Z", 120000),
    ("2026-03-01T12:00:00.1234567Z", 123456),
    ("2026-03-01 12:00:00.25+02:00", 250000),
])
def test_parse_date_accepts_any_fraction_length(value, microsecond):
    parsed = parse_date(value)
    assert parsed.microsecond == microsecond
    assert parsed.utcoffset() is not None


def test_project_date_with_short_fraction(client):
    response = client.post("/api/v1/projects", json={
        "name": "P", "status": "TODO", "priority": 1, "startDate": "2026-03-01T12:00:00.5Z",
    })
    assert response.status_code == 201
    assert response.json()["startDate"].startswith("2026-03-01T12:00:00.5")
