"""Shared fixtures: in-memory database and a recording email sender."""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.db.models import Base
from app.services.email_client import EmailPayload


def _memory_db_url() -> str:
    return f"sqlite+aiosqlite:///file:newsletter_{uuid.uuid4().hex}?mode=memory&cache=shared"


class RecordingSender:
    """Email sender double that records payloads and can fail on demand."""

    def __init__(self) -> None:
        self.sent: list[EmailPayload] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    async def __call__(self, payload: EmailPayload) -> None:
        if self.fail_all or payload.to.value in self.fail_for:
            raise RuntimeError("email transport unavailable")
        self.sent.append(payload)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(_memory_db_url(), future=True, connect_args={"uri": True})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()
