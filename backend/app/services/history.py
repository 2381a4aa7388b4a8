from fastapi import Depends

from app.config import Settings, get_settings
from app.errors import NotFound
from app.models.domain import EstimateRecord, EstimateSummary
from app.services.estimate_store import EstimateStore, get_estimate_store

# ids are a 32-bit INTEGER column; anything outside that range cannot exist.
MAX_ESTIMATE_ID = 2**31 - 1


class HistoryReader:
    """Read path over the estimate store. Storage failures propagate as 503s."""

    def __init__(self, store: EstimateStore, max_limit: int = 300):
        self.store = store
        self.max_limit = max_limit

    def clamp_limit(self, limit: int) -> int:
        return max(1, min(limit, self.max_limit))

    async def list(self, limit: int) -> list[EstimateSummary]:
        return await self.store.list(self.clamp_limit(limit))

    async def get(self, estimate_id: int) -> EstimateRecord:
        if not 0 < estimate_id <= MAX_ESTIMATE_ID:
            raise NotFound("Not found")
        record = await self.store.get(estimate_id)
        if record is None:
            raise NotFound("Not found")
        return record


def get_history_reader(
    store: EstimateStore = Depends(get_estimate_store),
    settings: Settings = Depends(get_settings),
) -> HistoryReader:
    return HistoryReader(store, settings.history_max_limit)
