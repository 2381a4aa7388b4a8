import ssl

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.config import settings

Base = declarative_base()


def build_engine(database_url: str, use_ssl: bool = False) -> AsyncEngine:
    connect_args = {}
    if use_ssl and database_url.startswith("postgresql+asyncpg"):
        # Managed Postgres hosts often present certificates we cannot verify.
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = context
    return create_async_engine(database_url, echo=False, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.database_url, settings.database_ssl)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

