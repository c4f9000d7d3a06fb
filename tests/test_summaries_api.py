"""Summarize endpoint: admission, persistence and browsing."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import Text, func, select

from recap.api.dependencies import get_rate_limiter
from recap.models.api_usage import ApiUsageModel
from recap.models.summary import SummaryModel
from recap.services.rate_limiter import RateLimiter

from tests.conftest import register
from tests.fakes import BrokenUsageRepository

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s"


async def _usage_rows(session_factory) -> int:
    async with session_factory() as session:
        return int(await session.scalar(select(func.count(ApiUsageModel.id))))


async def test_summarize_requires_authentication(client):
    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL})

    assert response.status_code == 401


async def test_summarize_persists_and_returns_summary(client, auth_headers, transcripts, completions):
    response = await client.post(
        "/v1/summaries",
        json={"youtube_url": VIDEO_URL, "word_count": 200},
        headers=auth_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["video_id"] == "dQw4w9WgXcQ"
    assert body["video_url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert body["video_title"] == "Baking Sourdough At Home"
    assert body["thumbnail"] == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    assert body["bullet_points"] == ["Feed the starter daily"]
    assert body["word_count"] == 200
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "1"
    assert transcripts.calls == ["dQw4w9WgXcQ"]
    assert completions.summaries[0][1:] == (200, True)


async def test_summarize_without_notes_returns_empty_lists(client, auth_headers):
    response = await client.post(
        "/v1/summaries",
        json={"youtube_url": "https://youtu.be/dQw4w9WgXcQ", "include_notes": False},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["bullet_points"] == []
    assert response.json()["action_items"] == []


async def test_invalid_url_is_rejected_before_admission(client, auth_headers, session_factory):
    response = await client.post(
        "/v1/summaries",
        json={"youtube_url": "https://vimeo.com/12345"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid YouTube URL"
    assert await _usage_rows(session_factory) == 0


async def test_third_request_in_window_is_throttled(client, auth_headers, clock, completions, session_factory):
    for _ in range(2):
        ok = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)
        assert ok.status_code == 201

    denied = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    assert denied.status_code == 429
    detail = denied.json()["detail"]
    assert detail["message"] == "Rate limit exceeded"
    assert detail["limit"] == 2
    assert detail["retry_after"] == 3600
    assert detail["reset_time"].startswith((clock.now + timedelta(hours=1)).isoformat()[:16])
    assert denied.headers["Retry-After"] == "3600"
    assert denied.headers["X-RateLimit-Remaining"] == "0"
    assert len(completions.summaries) == 2
    assert await _usage_rows(session_factory) == 2


async def test_throttle_lifts_once_the_window_slides(client, auth_headers, clock):
    for _ in range(2):
        await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)
    assert (
        await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)
    ).status_code == 429

    clock.advance(hours=1, seconds=1)
    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    assert response.status_code == 201


async def test_users_have_independent_quotas(client, auth_headers, other_headers):
    for _ in range(2):
        await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=other_headers)

    assert response.status_code == 201


async def test_ledger_outage_is_a_service_error_not_a_throttle(app, client, auth_headers, policies, completions):
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(BrokenUsageRepository(), policies)

    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    assert response.status_code == 503
    assert "Retry-After" not in response.headers
    assert completions.summaries == []


async def test_missing_transcript_keeps_the_admission_record(client, auth_headers, transcripts, session_factory):
    transcripts.unavailable.add("dQw4w9WgXcQ")

    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Could not fetch transcript")
    assert await _usage_rows(session_factory) == 1


async def test_list_get_and_delete_are_scoped_to_owner(client, auth_headers, other_headers, clock):
    created = []
    for _ in range(2):
        response = await client.post(
            "/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers
        )
        created.append(response.json()["id"])
        clock.advance(minutes=1)

    listing = await client.get("/v1/summaries", params={"limit": 1}, headers=auth_headers)
    assert listing.status_code == 200
    body = listing.json()
    assert body["total_count"] == 2
    assert body["has_more"] is True
    assert [item["id"] for item in body["summaries"]] == [created[1]]

    assert (await client.get("/v1/summaries", headers=other_headers)).json()["total_count"] == 0
    assert (await client.get(f"/v1/summaries/{created[0]}", headers=other_headers)).status_code == 404
    assert (await client.delete(f"/v1/summaries/{created[0]}", headers=other_headers)).status_code == 404

    fetched = await client.get(f"/v1/summaries/{created[0]}", headers=auth_headers)
    assert fetched.status_code == 200
    assert fetched.json()["id"] == created[0]

    deleted = await client.delete(f"/v1/summaries/{created[0]}", headers=auth_headers)
    assert deleted.json() == {"success": True}
    assert (await client.get(f"/v1/summaries/{created[0]}", headers=auth_headers)).status_code == 404


async def test_usage_endpoint_reports_consumption(client, auth_headers):
    await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    response = await client.get("/v1/usage/summaries:create", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "endpoint": "summaries:create",
        "limit": 2,
        "used": 1,
        "remaining": 1,
        "window_seconds": 3600,
    }


async def test_register_rejects_duplicate_email(client):
    await register(client, "carol@example.com")

    response = await client.post(
        "/v1/auth/register",
        json={"email": "Carol@Example.com", "password": "another-secret"},
    )

    assert response.status_code == 409


async def test_token_login_round_trip(client):
    await register(client, "dave@example.com")

    bad = await client.post("/v1/auth/token", json={"email": "dave@example.com", "password": "nope-nope"})
    good = await client.post(
        "/v1/auth/token", json={"email": "dave@example.com", "password": "correct-horse"}
    )

    assert bad.status_code == 401
    assert good.status_code == 200
    me = await client.get(
        "/v1/auth/me", headers={"Authorization": f"Bearer {good.json()['access_token']}"}
    )
    assert me.json()["email"] == "dave@example.com"
    assert me.json()["last_login_at"] is not None


async def test_long_generated_title_is_stored_whole(client, auth_headers, completions):
    completions.title = "Sourdough " * 60

    response = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["video_title"] == completions.title
    assert isinstance(SummaryModel.__table__.c.video_title.type, Text)
