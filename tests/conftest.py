from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
API_DIR = ROOT / "API"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

# Test-mode runtime guards:
# - no Ollama traffic (generation disabled, hashing embeddings)
# - no schema bootstrap against a live database on startup
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LLM_PROVIDER", "none")
os.environ.setdefault("EMBEDDING_PROVIDER", "local")
os.environ.setdefault("DATABASE_BOOTSTRAP_ENABLED", "false")

from tutor.core.resilience import reset_breakers  # noqa: E402
from tutor.core.retrieval_metrics import reset_retrieval_metrics  # noqa: E402
from tutor.main import app  # noqa: E402
from tutor.memory.database import get_db  # noqa: E402


class FakeSession:
    """Stands in for AsyncSession where routes only pass it through to patched collaborators."""

    def __init__(self):
        self.added: list = []
        self.commits = 0
        self.rollbacks = 0

    def add(self, obj) -> None:
        self.added.append(obj)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def fake_db() -> FakeSession:
    return FakeSession()


@pytest.fixture(scope="session")
def client() -> TestClient:
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def api(client, fake_db):
    async def _override_get_db():
        yield fake_db

    app.dependency_overrides[get_db] = _override_get_db
    yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def _reset_runtime_state():
    reset_breakers()
    reset_retrieval_metrics()
    yield
