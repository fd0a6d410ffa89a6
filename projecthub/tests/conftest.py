import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from projecthub.core.cache import cache
from projecthub.core.config import Settings
from projecthub.core.rate_limit import limiter
from projecthub.db.session import Database
from projecthub.main import create_app


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'projecthub-test.db'}",
        CACHE_ENABLED=False,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def app(test_settings, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)
    monkeypatch.setattr(cache, "enabled", False)
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db(test_settings):
    database = Database(test_settings.DATABASE_URL)
    database.connect()
    await database.create_all()
    async with database.session() as session:
        yield session
    await database.dispose()


@pytest.fixture
def make_user(client):
    def _make_user(name="Ada Lovelace", email="ada@example.com", **extra):
        response = client.post("/api/v1/users", json={"name": name, "email": email, **extra})
        assert response.status_code == 201, response.text
        return response.json()
    return _make_user


@pytest.fixture
def make_project(client):
    def _make_project(name="Launch", status="TODO", priority=3, **extra):
        response = client.post(
            "/api/v1/projects",
            json={"name": name, "status": status, "priority": priority, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make_project


@pytest.fixture
def make_comment(client):
    def _make_comment(title="Question", content="Looks good", author_id=None, **extra):
        response = client.post(
            "/api/v1/comments",
            json={"title": title, "content": content, "authorId": author_id, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make_comment
