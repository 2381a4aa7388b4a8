"""Unit tests for the SQL estimate store and history reader."""

import asyncio
from datetime import datetime, timezone

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from app.errors import NotFound, StorageUnavailable
from app.models.db_models import EstimateDB
from app.models.domain import Confidence, JobType, NewEstimate
from app.services.estimate_store import EstimateStore
from app.services.history import HistoryReader


def new_estimate(**overrides) -> NewEstimate:
    fields = dict(
        agent_label="Sam",
        job_type=JobType.STANDARD,
        dumpster_size=None,
        notes="Garage",
        photo_count=2,
        model_name="stub-vision-1",
        result_text="Estimated Volume: 3-5 cubic yards\nConfidence: Medium\nNotes: None",
        confidence=Confidence.MEDIUM,
        policy_version="standard-v1",
    )
    fields.update(overrides)
    return NewEstimate(**fields)


class TestEstimateStore:

    @pytest.mark.asyncio
    async def test_append_and_get(self, sqlite_store):
        saved = await sqlite_store.append(new_estimate(dumpster_size=20.0, job_type=JobType.DUMPSTER_OVERFLOW))

        assert isinstance(saved.id, int)
        assert isinstance(saved.created_at, datetime)

        record = await sqlite_store.get(saved.id)
        assert record.job_type == "DUMPSTER_OVERFLOW"
        assert record.dumpster_size == 20.0
        assert record.confidence == "Medium"
        assert record.photo_count == 2
        assert record.notes == "Garage"
        assert record.policy_version == "standard-v1"

    @pytest.mark.asyncio
    async def test_get_missing(self, sqlite_store):
        assert await sqlite_store.get(9999) is None

    @pytest.mark.asyncio
    async def test_null_confidence(self, sqlite_store):
        saved = await sqlite_store.append(new_estimate(confidence=None, result_text="about a truckload"))
        record = await sqlite_store.get(saved.id)
        assert record.confidence is None

    @pytest.mark.asyncio
    async def test_list_newest_first_with_preview(self, sqlite_store):
        ids = []
        for i in range(3):
            saved = await sqlite_store.append(new_estimate(result_text=f"{i}" + "x" * 300))
            ids.append(saved.id)

        rows = await sqlite_store.list(10)
        assert [r.id for r in rows] == list(reversed(ids))
        assert all(len(r.result_preview) == 180 for r in rows)
        assert rows[0].result_preview.startswith("2")

    @pytest.mark.asyncio
    async def test_list_is_stable_and_limited(self, sqlite_store):
        for _ in range(4):
            last = await sqlite_store.append(new_estimate())

        first = [r.id for r in await sqlite_store.list(10)]
        second = [r.id for r in await sqlite_store.list(10)]
        assert first == second

        newest = await sqlite_store.list(1)
        assert [r.id for r in newest] == [last.id]

    @pytest.mark.asyncio
    async def test_equal_timestamps_fall_back_to_insert_order(self, sqlite_store):
        frozen = datetime(2024, 1, 1, tzinfo=timezone.utc)
        async with sqlite_store.session_factory() as session:
            for label in ("first", "second"):
                session.add(EstimateDB(
                    created_at=frozen,
                    agent_label=label,
                    job_type="STANDARD",
                    photo_count=1,
                    model_name="stub-vision-1",
                    result_text="Confidence: Low",
                ))
                await session.flush()
            await session.commit()

        rows = await sqlite_store.list(2)
        assert [r.agent_label for r in rows] == ["second", "first"]
        assert rows[0].id > rows[1].id

    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_unavailable(self):
        factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))
        store = EstimateStore(factory)

        with pytest.raises(StorageUnavailable):
            await store.append(new_estimate())
        with pytest.raises(StorageUnavailable):
            await store.list(5)
        with pytest.raises(StorageUnavailable):
            await store.get(1)

    @pytest.mark.asyncio
    async def test_timeouts_become_storage_unavailable(self):
        store = EstimateStore(MagicMock(side_effect=asyncio.TimeoutError()))

        with pytest.raises(StorageUnavailable):
            await store.append(new_estimate())
        with pytest.raises(StorageUnavailable):
            await store.list(5)
        with pytest.raises(StorageUnavailable):
            await store.get(1)


class TestHistoryReader:

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, memory_store):
        for _ in range(5):
            await memory_store.append(new_estimate())
        reader = HistoryReader(memory_store, max_limit=3)

        assert len(await reader.list(100)) == 3
        assert len(await reader.list(0)) == 1
        assert len(await reader.list(-5)) == 1

    @pytest.mark.asyncio
    async def test_missing_id(self, memory_store):
        with pytest.raises(NotFound):
            await HistoryReader(memory_store).get(42)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("estimate_id", [0, -1, 2**31, 3_000_000_000])
    async def test_out_of_range_id_is_not_found(self, failing_store, estimate_id):
        # The store is never asked, so an unreachable database does not matter.
        with pytest.raises(NotFound):
            await HistoryReader(failing_store).get(estimate_id)

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, failing_store):
        reader = HistoryReader(failing_store)
        with pytest.raises(StorageUnavailable):
            await reader.list(10)
        with pytest.raises(StorageUnavailable):
            await reader.get(1)
