from __future__ import annotations

import uuid

VIDEO_URL = "https://youtu.be/dQw4w9WgXcQ"


async def test_languages_are_listed(client):
    response = await client.get("/v1/translate/languages")

    assert response.status_code == 200
    assert response.json()["es"] == "Spanish"
    assert len(response.json()) == 22


async def test_unsupported_language_is_rejected(client, auth_headers, completions):
    response = await client.post(
        "/v1/translate",
        json={"text": "Hello", "target_language": "xx"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported language"
    assert completions.translations == []


async def test_list_translation_keeps_items(client, auth_headers):
    response = await client.post(
        "/v1/translate",
        json={"text": ["One", "Two"], "target_language": "fr", "type": "bullet_points"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"translated_text": ["[fr] One", "[fr] Two"]}


async def test_translation_is_unlimited_and_unrecorded(client, auth_headers):
    for _ in range(12):
        response = await client.post(
            "/v1/translate",
            json={"text": "Hello", "target_language": "de"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers

    usage = await client.get("/v1/usage/summaries:translate", headers=auth_headers)
    assert usage.json()["limit"] is None
    assert usage.json()["used"] == 0


async def test_diagram_is_stored_on_the_summary(client, auth_headers):
    created = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)
    summary_id = created.json()["id"]

    response = await client.post(
        "/v1/diagrams",
        json={"summary": "Bake bread", "bullet_points": ["Mix"], "summary_id": summary_id},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"mermaid_code": "graph TD\n  A[Starter] --> B[Dough]", "success": True}
    stored = await client.get(f"/v1/summaries/{summary_id}", headers=auth_headers)
    assert stored.json()["mermaid_code"].startswith("graph TD")


async def test_diagram_endpoint_has_its_own_quota(client, auth_headers, clock):
    first = await client.post("/v1/diagrams", json={"summary": "Bake bread"}, headers=auth_headers)
    second = await client.post("/v1/diagrams", json={"summary": "Bake bread"}, headers=auth_headers)

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "0"
    assert second.status_code == 429
    assert second.json()["detail"]["limit"] == 1
    assert second.headers["Retry-After"] == "60"

    clock.advance(seconds=61)
    third = await client.post("/v1/diagrams", json={"summary": "Bake bread"}, headers=auth_headers)
    assert third.status_code == 200

    # Summaries are a separate partition.
    summary = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)
    assert summary.status_code == 201


async def test_diagram_for_foreign_summary_is_not_found(client, auth_headers, other_headers, completions):
    created = await client.post("/v1/summaries", json={"youtube_url": VIDEO_URL}, headers=auth_headers)

    response = await client.post(
        "/v1/diagrams",
        json={"summary": "Bake bread", "summary_id": created.json()["id"]},
        headers=other_headers,
    )
    missing = await client.post(
        "/v1/diagrams",
        json={"summary": "Bake bread", "summary_id": str(uuid.uuid4())},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert missing.status_code == 404
    assert completions.diagrams == []


async def test_rejected_diagram_requests_do_not_spend_quota(client, auth_headers):
    invalid = await client.post("/v1/diagrams", json={"summary": ""}, headers=auth_headers)
    unknown = await client.post(
        "/v1/diagrams",
        json={"summary": "Bake bread", "summary_id": str(uuid.uuid4())},
        headers=auth_headers,
    )

    assert invalid.status_code == 422
    assert unknown.status_code == 404
    usage = await client.get("/v1/usage/summaries:diagram", headers=auth_headers)
    assert usage.json()["used"] == 0

    response = await client.post("/v1/diagrams", json={"summary": "Bake bread"}, headers=auth_headers)
    assert response.status_code == 200
