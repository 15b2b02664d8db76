from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from qrorder.api.main import create_app
from qrorder.infrastructure.cache import redis_client
from qrorder.infrastructure.db import session as db_session


@pytest.fixture(autouse=True)
def memory_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("OTEL_SERVICE_NAME", "qrorder-backend-test")
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("KITCHEN_PASSWORD", raising=False)

    db_session._build_engine.cache_clear()
    redis_client._build_client.cache_clear()
    yield
    db_session._build_engine.cache_clear()
    redis_client._build_client.cache_clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(create_app()) as test_client:
        yield test_client
