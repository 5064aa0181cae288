from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ltp_service.config.settings import get_settings

# only the audit table lives here; nothing on the price path touches the database
engine = create_async_engine(get_settings().DB_URL, echo=False)

SessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


class Base(DeclarativeBase):
    pass


def session_factory() -> AsyncSession:
    return SessionLocal()
