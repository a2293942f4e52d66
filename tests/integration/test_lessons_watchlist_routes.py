"""
Integration Tests - Lessons & Watchlist API
"""

from datetime import timedelta

import pytest

from finedu.domain.services.lesson_engine import lesson_day_for
from finedu.infrastructure.db.repositories.progress_repository import LessonProgressRepository
from finedu.utils.time import now_utc_naive, today_utc

LESSONS = "/api/v1/lessons"
WATCHLIST = "/api/v1/watchlist"


@pytest.mark.integration
class TestLessons:

    async def test_today(self, client):
        response = await client.get(f"{LESSONS}/today")

        assert response.status_code == 200
        body = response.json()
        assert body["day"] == lesson_day_for(today_utc(), 3)
        assert len(body["quiz"]["options"]) >= 2

    async def test_progress_and_stats(self, client, user_headers):
        first = await client.post(f"{LESSONS}/progress", json={"lesson_day": 1, "quiz_score": 80}, headers=user_headers)
        assert first.status_code == 200
        assert first.json()["streak"] == 1
        assert first.json()["lesson_title"] == "What is an Emergency Fund?"

        # Same day keeps the streak
        second = await client.post(f"{LESSONS}/progress", json={"lesson_day": 2, "quiz_score": 95}, headers=user_headers)
        assert second.json()["streak"] == 1

        body = (await client.get(f"{LESSONS}/progress", headers=user_headers)).json()
        assert body["stats"] == {"current_streak": 1, "total_lessons_completed": 2, "average_score": 88}
        assert [p["lesson_day"] for p in body["progress"]] == [2, 1]

    async def test_retake_overwrites(self, client, user_headers):
        await client.post(f"{LESSONS}/progress", json={"lesson_day": 3, "quiz_score": 40}, headers=user_headers)
        await client.post(f"{LESSONS}/progress", json={"lesson_day": 3, "quiz_score": 100}, headers=user_headers)

        body = (await client.get(f"{LESSONS}/progress", headers=user_headers)).json()
        assert len(body["progress"]) == 1
        assert body["progress"][0]["quiz_score"] == 100

    async def test_streak_continues_from_yesterday(self, client, user_headers, session_factory):
        async with session_factory() as session:
            await LessonProgressRepository(session).upsert(
                user_id="user-1",
                lesson_day=1,
                quiz_score=70,
                streak=3,
                completed_at=now_utc_naive() - timedelta(days=1),
            )
            await session.commit()

        response = await client.post(
            f"{LESSONS}/progress", json={"lesson_day": 2, "quiz_score": 90}, headers=user_headers
        )

        assert response.json()["streak"] == 4

    async def test_unknown_lesson(self, client, user_headers):
        response = await client.post(f"{LESSONS}/progress", json={"lesson_day": 9, "quiz_score": 50}, headers=user_headers)
        assert response.status_code == 404

    async def test_score_out_of_range(self, client, user_headers):
        response = await client.post(f"{LESSONS}/progress", json={"lesson_day": 1, "quiz_score": 101}, headers=user_headers)
        assert response.status_code == 422

    async def test_empty_progress(self, client, user_headers):
        body = (await client.get(f"{LESSONS}/progress", headers=user_headers)).json()
        assert body["progress"] == []
        assert body["stats"]["average_score"] == 0


@pytest.mark.integration
class TestWatchlist:

    async def test_add_list_remove(self, client, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]

        added = await client.post(WATCHLIST, json={"product_id": fund.id}, headers=user_headers)
        assert added.status_code == 201
        assert added.json()["product"]["name"] == "Sharia Money Market Fund"

        items = (await client.get(WATCHLIST, headers=user_headers)).json()
        assert [i["product_id"] for i in items] == [fund.id]

        removed = await client.delete(WATCHLIST, params={"product_id": fund.id}, headers=user_headers)
        assert removed.json() == {"success": True, "removed": 1}
        assert (await client.get(WATCHLIST, headers=user_headers)).json() == []

        again = await client.delete(WATCHLIST, params={"product_id": fund.id}, headers=user_headers)
        assert again.json()["removed"] == 0

    async def test_duplicate(self, client, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]
        await client.post(WATCHLIST, json={"product_id": fund.id}, headers=user_headers)

        response = await client.post(WATCHLIST, json={"product_id": fund.id}, headers=user_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "duplicate_watchlist"

    async def test_unknown_product(self, client, user_headers, seeded_products):
        response = await client.post(WATCHLIST, json={"product_id": 9999}, headers=user_headers)
        assert response.status_code == 404

    async def test_watchlists_are_per_user(self, client, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]
        await client.post(WATCHLIST, json={"product_id": fund.id}, headers=user_headers)

        other = (await client.get(WATCHLIST, headers={"X-User-Id": "user-2"})).json()
        assert other == []
