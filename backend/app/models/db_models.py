from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, DateTime, Text, Integer

from app.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EstimateDB(Base):
    __tablename__ = "estimates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    # Reserved for a future multi-user identity model; always null today.
    user_id = Column(String, nullable=True)
    agent_label = Column(String(80), nullable=True)
    job_type = Column(String(32), nullable=False)
    dumpster_size = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    photo_count = Column(Integer, nullable=False)
    model_name = Column(String, nullable=False)
    result_text = Column(Text, nullable=False)
    confidence = Column(String(16), nullable=True)
    policy_version = Column(String(64), nullable=True)
