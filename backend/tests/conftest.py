"""Pytest fixtures for the dispatch backend (matching, triage, repo, service, API)."""
import sys
from pathlib import Path

import pytest

# Ensure backend/ is on path so ai4h and dispatch_api import without install
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from ai4h.dispatch.service import DispatchService  # noqa: E402
from ai4h.repo.in_memory import InMemoryRepo  # noqa: E402

CITY_GENERAL = (12.9716, 77.5946)


@pytest.fixture
def repo():
    return InMemoryRepo(seed_demo_data=True)


@pytest.fixture
def empty_repo():
    return InMemoryRepo(seed_demo_data=False)


@pytest.fixture
def service(repo):
    return DispatchService(repo)


@pytest.fixture
def client(service):
    from fastapi.testclient import TestClient

    from dispatch_api.main import app, get_service

    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
