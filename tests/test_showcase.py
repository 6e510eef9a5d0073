import uuid

PERFORMANCE_URL = "/api/performance"
AUDIENCE_URL = "/api/audienceReview"
QUOTE_URL = "/api/musicQuote"


def performance_payload(**overrides):
    payload = {
        "name": "Asha",
        "title": "Raga Mohanam",
        "skillLevel": "beginner",
        "videoLink": "https://youtube.example.com/watch?v=abc",
        "photo": "https://cdn.example.com/asha.jpg",
        "thumbnail": "https://cdn.example.com/asha-thumb.jpg",
    }
    payload.update(overrides)
    return payload


async def test_performance_crud(client):
    created = await client.post(PERFORMANCE_URL, json=performance_payload())
    assert created.status_code == 201
    performance = created.json()["data"]
    assert performance["skill_level"] == "beginner"
    assert performance["video"] is None

    updated = await client.put(
        f"{PERFORMANCE_URL}/{performance['id']}",
        json={"title": "Raga Kalyani", "skillLevel": "intermediate"},
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Raga Kalyani"
    assert updated.json()["data"]["skill_level"] == "intermediate"

    fetched = await client.get(f"{PERFORMANCE_URL}/{performance['id']}")
    assert fetched.json()["data"]["name"] == "Asha"

    deleted = await client.delete(f"{PERFORMANCE_URL}/{performance['id']}")
    assert deleted.status_code == 200
    missing = await client.get(f"{PERFORMANCE_URL}/{performance['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Performance not found"}


async def test_performance_needs_a_video_source(client):
    payload = performance_payload()
    del payload["videoLink"]

    response = await client.post(PERFORMANCE_URL, json=payload)
    assert response.status_code == 400
    assert "Either video or videoLink is required" in response.json()["errors"][0]

    uploaded = await client.post(
        PERFORMANCE_URL,
        json=dict(payload, video="https://cdn.example.com/asha.mp4"),
    )
    assert uploaded.status_code == 201


async def test_performances_filtered_by_skill_level(client):
    await client.post(PERFORMANCE_URL, json=performance_payload(name="Asha"))
    await client.post(PERFORMANCE_URL, json=performance_payload(name="Meera", skillLevel="advanced"))

    everything = await client.get(PERFORMANCE_URL)
    assert {p["name"] for p in everything.json()["data"]} == {"Asha", "Meera"}

    advanced = await client.get(PERFORMANCE_URL, params={"skillLevel": "advanced"})
    assert [p["name"] for p in advanced.json()["data"]] == ["Meera"]

    unknown = await client.get(PERFORMANCE_URL, params={"skillLevel": "expert"})
    assert unknown.status_code == 400


async def test_audience_review_crud(client):
    created = await client.post(AUDIENCE_URL, json={
        "name": "Lakshmi",
        "description": "My daughter loves the violin classes",
        "skillLevel": "beginner",
        "video": "https://cdn.example.com/review.mp4",
        "photo": "https://cdn.example.com/lakshmi.jpg",
        "thumbnail": "https://cdn.example.com/lakshmi-thumb.jpg",
    })
    assert created.status_code == 201
    review_id = created.json()["data"]["id"]

    updated = await client.put(f"{AUDIENCE_URL}/{review_id}", json={"description": "Great teachers"})
    assert updated.json()["data"]["description"] == "Great teachers"
    assert updated.json()["data"]["name"] == "Lakshmi"

    listed = await client.get(AUDIENCE_URL)
    assert [r["id"] for r in listed.json()["data"]] == [review_id]

    await client.delete(f"{AUDIENCE_URL}/{review_id}")
    missing = await client.put(f"{AUDIENCE_URL}/{review_id}", json={"name": "X"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "Audience review not found"


async def test_audience_review_requires_video(client):
    response = await client.post(AUDIENCE_URL, json={
        "name": "Lakshmi",
        "description": "Lovely",
        "skillLevel": "beginner",
        "photo": "https://cdn.example.com/lakshmi.jpg",
        "thumbnail": "https://cdn.example.com/lakshmi-thumb.jpg",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_music_quote_crud(client):
    created = await client.post(QUOTE_URL, json={
        "text": "Music is the divine way to tell beautiful things",
        "artist": "Tyagaraja",
        "genre": "Carnatic",
    })
    assert created.status_code == 201
    quote = created.json()["data"]
    assert quote["source"] is None

    updated = await client.put(f"{QUOTE_URL}/{quote['id']}", json={"source": "Kritis"})
    assert updated.json()["data"]["source"] == "Kritis"
    assert updated.json()["data"]["artist"] == "Tyagaraja"

    listed = await client.get(QUOTE_URL)
    assert len(listed.json()["data"]) == 1

    deleted = await client.delete(f"{QUOTE_URL}/{quote['id']}")
    assert deleted.json() == {"success": True, "message": "Quote deleted successfully"}

    missing = await client.delete(f"{QUOTE_URL}/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Quote not found"
