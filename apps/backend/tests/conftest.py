import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("COOKIE_SECRET", "test-cookie-secret")
os.environ.setdefault("ADMIN_USERNAME", "operator")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")


@pytest.fixture
def job_store():
    store = MagicMock()
    store.existing_job_ids.return_value = set()
    store.insert_jobs.side_effect = lambda jobs: [
        {**job.model_dump(), "id": f"uuid-{i}"} for i, job in enumerate(jobs)
    ]
    return store


@pytest.fixture
def admin_store():
    store = MagicMock()
    store.remaining_posts.return_value = 500
    return store


@pytest.fixture
def app():
    from main import app
    from app.rate_limit import limiter

    limiter.enabled = False
    yield app
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def authed_client(app, job_store, admin_store):
    """Client with an operator session and mocked stores."""
    from app.db_config import require_db
    from pipeline.admin_store import get_admin_store
    from pipeline.job_store import get_job_store
    from security.admin_auth import admin_required

    app.dependency_overrides[admin_required] = lambda: "operator"
    app.dependency_overrides[get_job_store] = lambda: job_store
    app.dependency_overrides[get_admin_store] = lambda: admin_store
    app.dependency_overrides[require_db] = lambda: None
    return TestClient(app)
