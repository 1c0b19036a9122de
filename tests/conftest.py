"""Shared test fixtures.

Settings are read at import time, so the environment is pinned before any
src module is imported: a throwaway JWT secret, SQLite instead of Postgres,
and no background sweeper.
"""

import os

os.environ["JWT_SECRET"] = "test-secret-key-for-quote-market-tests"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SWEEPER_ENABLED"] = "false"

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.qm_common.database import Base  # noqa: E402
from src.qm_common.enums import NotifyEvent  # noqa: E402
from src.qm_order.infrastructure import db_models as _order_tables  # noqa: E402, F401
from src.qm_quote.infrastructure import db_models as _quote_tables  # noqa: E402, F401
from src.qm_request.infrastructure import db_models as _request_tables  # noqa: E402, F401

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Injectable clock: tests move time explicitly."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, NotifyEvent, dict[str, Any]]] = []

    async def send(self, user_id: str, event: NotifyEvent, payload: dict[str, Any]) -> None:
        self.sent.append((user_id, event, payload))

    def events_for(self, user_id: str) -> list[NotifyEvent]:
        return [event for uid, event, _ in self.sent if uid == user_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def session_factory(tmp_path: Any) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite so that separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quote_market.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
