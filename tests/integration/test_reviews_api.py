# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.api.reviews import create_reviews_router
from reviewable.db.session import get_db
from tests.conftest import make_article, make_cached_post, make_post
from tests.models import ARTICLE_REVIEWS, CACHED_POST_REVIEWS, POST_REVIEWS


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    app = FastAPI()
    app.include_router(create_reviews_router(POST_REVIEWS), prefix="/posts")
    app.include_router(create_reviews_router(ARTICLE_REVIEWS), prefix="/articles")
    app.include_router(create_reviews_router(CACHED_POST_REVIEWS), prefix="/cached-posts")

    async def _db() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = _db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


class TestPutReview:
    async def test_creates_then_updates(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()

        first = await client.put(f"/posts/{post.id}/reviews", json={"rating": 3, "body": "ok"})
        assert first.status_code == 200
        data = first.json()
        assert data["ip"] == "127.0.0.1"
        assert data["reviewer_type"] is None
        assert data["rating"] == 3.0

        second = await client.put(f"/posts/{post.id}/reviews", json={"rating": "4.5"})
        assert second.status_code == 200
        assert second.json()["id"] == data["id"]
        assert second.json()["body"] == "ok"

        listed = await client.get(f"/posts/{post.id}/reviews")
        assert [r["rating"] for r in listed.json()] == [4.5]

    async def test_identifiers_in_body_are_ignored(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        resp = await client.put(
            f"/posts/{post.id}/reviews", json={"rating": 2, "ip": "10.9.9.9", "by": "x"}
        )
        assert resp.status_code == 200
        assert resp.json()["ip"] == "127.0.0.1"

    async def test_off_scale_rating_is_unprocessable(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        resp = await client.put(f"/posts/{post.id}/reviews", json={"rating": 7})
        assert resp.status_code == 422

    async def test_empty_review_is_unprocessable(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        resp = await client.put(f"/posts/{post.id}/reviews", json={})
        assert resp.status_code == 422

    async def test_ip_reviews_forbidden_when_disabled(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        article = await make_article(db_session)
        await db_session.commit()
        resp = await client.put(f"/articles/{article.id}/reviews", json={"rating": 2})
        assert resp.status_code == 403
        assert "IP is disabled" in resp.json()["detail"]

    async def test_unknown_reviewable(self, client: AsyncClient) -> None:
        resp = await client.put("/posts/999/reviews", json={"rating": 2})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "ReviewablePost not found"

    async def test_non_numeric_id(self, client: AsyncClient) -> None:
        resp = await client.get("/posts/abc/ratings")
        assert resp.status_code == 404


class TestDeleteReview:
    async def test_removes_own_review(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        await client.put(f"/posts/{post.id}/reviews", json={"rating": 3})

        resp = await client.delete(f"/posts/{post.id}/reviews")
        assert resp.status_code == 204
        assert (await client.get(f"/posts/{post.id}/reviews")).json() == []

    async def test_no_review_is_not_found(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        resp = await client.delete(f"/posts/{post.id}/reviews")
        assert resp.status_code == 404


class TestRatings:
    async def test_live_summary(self, client: AsyncClient, db_session: AsyncSession) -> None:
        post = await make_post(db_session)
        await db_session.commit()
        await client.put(f"/posts/{post.id}/reviews", json={"rating": 2.5})

        resp = await client.get(f"/posts/{post.id}/ratings")
        assert resp.status_code == 200
        assert resp.json() == {
            "reviewable_type": "ReviewablePost",
            "reviewable_id": str(post.id),
            "total_reviews": 1,
            "average_rating": 2.5,
            "precision": 2,
            "cached": False,
        }

    async def test_cached_summary_and_recalculate(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        post = await make_cached_post(db_session)
        await db_session.commit()
        await client.put(f"/cached-posts/{post.id}/reviews", json={"rating": 4})

        cached = (await client.get(f"/cached-posts/{post.id}/ratings")).json()
        assert cached["cached"] is True
        assert cached["total_reviews"] == 1
        assert cached["average_rating"] == 4.0

        live = (await client.get(f"/cached-posts/{post.id}/ratings?recalculate=true")).json()
        assert live["cached"] is False
        assert live["average_rating"] == 4.0
