"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.api.main import create_app
from app.config import Settings
from app.core.templating import build_starter_template
from app.database import Database


@pytest.fixture(scope="function")
def database(tmp_path):
    """File-backed SQLite database per test."""
    db_handle = Database(f"sqlite:///{tmp_path / 'test.db'}", connect_retries=1)
    db_handle.create_all()
    yield db_handle
    db_handle.dispose()


@pytest.fixture(scope="function")
def db(database):
    """Session on the test database."""
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def template_path(tmp_path):
    """Starter template written where the service expects its bundled file."""
    path = tmp_path / "tasks.docx"
    path.write_bytes(build_starter_template())
    return path


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(tmp_path, template_path, upload_dir):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        upload_dir=str(upload_dir),
        template_path=str(template_path),
        db_connect_retries=1,
    )


@pytest.fixture
def client(settings, database):
    """TestClient with the lifespan running."""
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client
