# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reviewable.db.session import create_tables
from reviewable.models.base import Base
from tests.models import (
    Account,
    CachedEdition,
    CachedReviewablePost,
    Guest,
    ReviewableArticle,
    ReviewablePost,
    User,
)


def _get_test_database_url() -> str:
    """Return the test database URL from env, falling back to in-memory SQLite."""
    return os.environ.get(
        "TEST_DATABASE_URL",
        "sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Create an async engine for the test database."""
    url = _get_test_database_url()
    engine = create_async_engine(url, echo=False)
    await create_tables(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Provide a session that rolls back whatever is left uncommitted."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# Factory helpers for persisting model instances in tests
# ---------------------------------------------------------------------------


async def _persist[T](session: AsyncSession, entity: T) -> T:
    session.add(entity)
    await session.flush()
    return entity


async def make_user(session: AsyncSession, *, name: str = "Test User") -> User:
    return await _persist(session, User(name=name))


async def make_account(session: AsyncSession) -> Account:
    return await _persist(session, Account())


async def make_guest(session: AsyncSession) -> Guest:
    return await _persist(session, Guest())


async def make_post(session: AsyncSession, *, title: str = "Test post") -> ReviewablePost:
    return await _persist(session, ReviewablePost(title=title))


async def make_article(session: AsyncSession) -> ReviewableArticle:
    return await _persist(session, ReviewableArticle())


async def make_edition(
    session: AsyncSession, *, book_id: int = 1, number: int = 2
) -> CachedEdition:
    return await _persist(session, CachedEdition(book_id=book_id, number=number))


async def make_cached_post(session: AsyncSession) -> CachedReviewablePost:
    return await _persist(session, CachedReviewablePost())
