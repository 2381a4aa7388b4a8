import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.database import AsyncSessionLocal
from app.errors import StorageUnavailable
from app.models.db_models import EstimateDB
from app.models.domain import EstimateRecord, EstimateSummary, NewEstimate, Saved

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 180

# Connection refused/reset surfaces as OSError and connect/command timeouts as
# asyncio.TimeoutError; the asyncpg dialect wraps neither.
STORAGE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class EstimateStore:
    """
    Append-only store of completed estimates. Records are never updated or
    deleted here. Every driver failure surfaces as StorageUnavailable.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory

    async def append(self, estimate: NewEstimate) -> Saved:
        row = EstimateDB(
            user_id=None,
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
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except STORAGE_ERRORS as e:
            logger.warning(f"Failed to save estimate: {e}")
            raise StorageUnavailable() from e
        return Saved(id=row.id, created_at=row.created_at)

    async def list(self, limit: int) -> list[EstimateSummary]:
        """Newest first; equal timestamps fall back to the later insert first."""
        stmt = (
            select(
                EstimateDB.id,
                EstimateDB.created_at,
                EstimateDB.agent_label,
                EstimateDB.job_type,
                EstimateDB.dumpster_size,
                EstimateDB.photo_count,
                EstimateDB.confidence,
                func.substr(EstimateDB.result_text, 1, PREVIEW_CHARS).label("result_preview"),
            )
            .order_by(EstimateDB.created_at.desc(), EstimateDB.id.desc())
            .limit(limit)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.mappings().all()
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to list estimates: {e}")
            raise StorageUnavailable() from e
        return [EstimateSummary(**row) for row in rows]

    async def get(self, estimate_id: int) -> EstimateRecord | None:
        try:
            async with self.session_factory() as session:
                row = await session.get(EstimateDB, estimate_id)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to load estimate {estimate_id}: {e}")
            raise StorageUnavailable() from e
        if row is None:
            return None
        return EstimateRecord(
            id=row.id,
            created_at=row.created_at,
            agent_label=row.agent_label,
            job_type=row.job_type,
            dumpster_size=row.dumpster_size,
            notes=row.notes,
            photo_count=row.photo_count,
            model_name=row.model_name,
            result_text=row.result_text,
            confidence=row.confidence,
            policy_version=row.policy_version,
        )


_store = EstimateStore()


def get_estimate_store() -> EstimateStore:
    return _store
