"""Pytest configuration and shared fixtures for estimator tests."""

import io
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

# ============================================================================
# Ensure local imports work (app/, main.py live under backend/)
# ============================================================================
BACKEND_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

# Settings are read at import time, so pin the environment before any app import.
os.environ.setdefault("APP_PIN", "1234")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("POLICY_PROFILE", "standard")

from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from app.config import Settings, get_settings  # noqa: E402
from app.db.database import Base  # noqa: E402
from app.errors import StorageUnavailable  # noqa: E402
from app.models.domain import EstimateRecord, EstimateSummary, NewEstimate, Saved  # noqa: E402
from app.services.estimate_store import EstimateStore, get_estimate_store  # noqa: E402
from app.services.inference import InferenceInvoker  # noqa: E402
from app.services.llm_provider import VisionProvider  # noqa: E402
from app.services.orchestrator import get_inference_invoker  # noqa: E402

SAMPLE_RESULT = "Estimated Volume: 3–5 cubic yards\nConfidence: Medium\nNotes: None"


# ============================================================================
# Test doubles
# ============================================================================

class StubProvider(VisionProvider):
    """Records every call and returns a canned response."""

    def __init__(self, response: str = SAMPLE_RESULT, error: Exception | None = None, model: str = "stub-vision-1"):
        self.model = model
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, document, system_prompt, max_output_tokens, model=None):
        self.calls.append({
            "document": document,
            "system_prompt": system_prompt,
            "max_output_tokens": max_output_tokens,
            "model": model,
        })
        if self.error:
            raise self.error
        return self.response


class InMemoryStore:
    """Same contract as EstimateStore, backed by a list."""

    def __init__(self):
        self.records: list[EstimateRecord] = []
        self.append_calls = 0
        self._clock = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    async def append(self, estimate: NewEstimate) -> Saved:
        self.append_calls += 1
        self._clock += timedelta(seconds=1)
        record = EstimateRecord(
            id=len(self.records) + 1,
            created_at=self._clock,
            agent_label=estimate.agent_label,
            job_type=estimate.job_type.value,
            dumpster_size=estimate.dumpster_size,
            notes=estimate.notes,
            photo_count=estimate.photo_count,
            model_name=estimate.model_name,
            result_text=estimate.result_text,
            confidence=estimate.confidence.value if estimate.confidence else None,
            policy_version=estimate.policy_version,
        )
        self.records.append(record)
        return Saved(id=record.id, created_at=record.created_at)

    async def list(self, limit: int) -> list[EstimateSummary]:
        ordered = sorted(self.records, key=lambda r: (r.created_at, r.id), reverse=True)[:limit]
        return [
            EstimateSummary(
                id=r.id,
                created_at=r.created_at,
                agent_label=r.agent_label,
                job_type=r.job_type,
                dumpster_size=r.dumpster_size,
                photo_count=r.photo_count,
                confidence=r.confidence,
                result_preview=r.result_text[:180],
            )
            for r in ordered
        ]

    async def get(self, estimate_id: int) -> EstimateRecord | None:
        return next((r for r in self.records if r.id == estimate_id), None)


class FailingStore:
    """Every call fails the way an unreachable database does."""

    def __init__(self):
        self.append_calls = 0

    async def append(self, estimate):
        self.append_calls += 1
        raise StorageUnavailable()

    async def list(self, limit):
        raise StorageUnavailable()

    async def get(self, estimate_id):
        raise StorageUnavailable()


# ============================================================================
# Image helpers
# ============================================================================

def png_bytes(size=(8, 8), color=(120, 120, 120, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(size=(8, 8), color=(90, 90, 90)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG")
    return buf.getvalue()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_settings():
    return Settings(
        app_pin="1234",
        session_secret="test-session-secret",
        openai_api_key="",
        google_api_key="",
        max_files=12,
        max_file_mb=15,
        max_output_tokens=220,
    )


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def make_client(test_settings, stub_provider):
    """Builds a TestClient with the provider and store swapped for test doubles."""
    from main import app

    def _make(store=None, provider=None):
        store = store if store is not None else InMemoryStore()
        invoker = InferenceInvoker(provider or stub_provider)
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_inference_invoker] = lambda: invoker
        app.dependency_overrides[get_estimate_store] = lambda: store
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, memory_store):
    return make_client(store=memory_store)


@pytest.fixture
def authed_client(client):
    response = client.post("/api/login", json={"pin": "1234"})
    assert response.status_code == 200
    return client


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    """EstimateStore over a throwaway SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'estimates.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield EstimateStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()
