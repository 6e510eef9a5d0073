import uuid

COURSES_URL = "/chinthanaprabha/courses-lessons"


async def test_category_crud(client):
    created = await client.post("/api/category", json={
        "name": "Percussion",
        "subCategories": ["Mridangam", "Tabla"],
        "isTrending": True,
    })
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["sub_categories"] == ["Mridangam", "Tabla"]

    duplicate = await client.post("/api/category", json={"name": "Percussion"})
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Category 'Percussion' already exists"

    trending = await client.get("/api/category", params={"trending": "true"})
    assert [c["name"] for c in trending.json()["data"]] == ["Percussion"]

    updated = await client.put(f"/api/category/{category['id']}", json={"isActive": False})
    assert updated.json()["data"]["is_active"] is False
    assert (await client.get("/api/category")).json()["data"] == []

    deleted = await client.delete(f"/api/category/{category['id']}")
    assert deleted.status_code == 200
    missing = await client.get(f"/api/category/{category['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Category not found"}


async def test_instrument_crud_and_search(client, seed):
    category = await seed.category("Strings")
    for name in ("Violin", "Veena", "Sitar"):
        response = await client.post("/api/instrument", json={
            "name": name,
            "price": 1000,
            "gst": 180,
            "categoryId": str(category.id),
            "subcategory": "Bowed" if name == "Violin" else "Plucked",
        })
        assert response.status_code == 201

    listed = await client.get("/api/instrument", params={"limit": 2})
    body = listed.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["total_items"] == 3
    assert body["pagination"]["has_next_page"] is True
    assert body["data"][0]["category_name"] == "Strings"

    plucked = await client.get("/api/instrument", params={"subcategory": "Plucked"})
    assert plucked.json()["pagination"]["total_items"] == 2

    searched = await client.get("/api/instrument", params={"search": "vio"})
    violin = searched.json()["data"][0]
    assert violin["name"] == "Violin"
    assert violin["price"] == 1000
    assert violin["gst"] == 180

    updated = await client.put(f"/api/instrument/{violin['id']}", json={"inStock": False, "price": 900})
    assert updated.json()["data"]["in_stock"] is False
    assert updated.json()["data"]["price"] == 900

    deleted = await client.delete(f"/api/instrument/{violin['id']}")
    assert deleted.status_code == 200
    assert (await client.get(f"/api/instrument/{violin['id']}")).status_code == 404


async def test_instrument_with_unknown_category(client):
    response = await client.post("/api/instrument", json={
        "name": "Ghatam",
        "price": 400,
        "categoryId": str(uuid.uuid4()),
    })
    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"


async def test_negative_price_is_rejected(client):
    response = await client.post("/api/instrument", json={"name": "Ghatam", "price": -1})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_course_with_lessons(client):
    created = await client.post(f"{COURSES_URL}/courses", json={
        "name": "Hindustani Vocals",
        "price": 2500,
        "instructor": "Ravi",
    })
    assert created.status_code == 201
    course_id = created.json()["data"]["id"]
    assert created.json()["data"]["lessons"] == []

    first = await client.post(f"{COURSES_URL}/courses/{course_id}/lessons", json={
        "title": "Sargam",
        "videoUrls": ["https://videos.example.com/sargam.mp4"],
    })
    second = await client.post(f"{COURSES_URL}/courses/{course_id}/lessons", json={"title": "Alankars"})
    assert first.json()["data"]["position"] == 0
    assert second.json()["data"]["position"] == 1

    await client.put(f"{COURSES_URL}/lessons/{second.json()['data']['id']}", json={"position": 0})
    await client.put(f"{COURSES_URL}/lessons/{first.json()['data']['id']}", json={"position": 1})

    detail = (await client.get(f"{COURSES_URL}/courses/{course_id}")).json()["data"]
    assert [lesson["title"] for lesson in detail["lessons"]] == ["Alankars", "Sargam"]
    assert detail["lessons"][1]["video_urls"] == ["https://videos.example.com/sargam.mp4"]

    renamed = await client.put(f"{COURSES_URL}/courses/{course_id}", json={"name": "Hindustani Vocals I"})
    assert renamed.json()["data"]["name"] == "Hindustani Vocals I"
    assert len(renamed.json()["data"]["lessons"]) == 2

    await client.delete(f"{COURSES_URL}/lessons/{first.json()['data']['id']}")
    detail = (await client.get(f"{COURSES_URL}/courses/{course_id}")).json()["data"]
    assert [lesson["title"] for lesson in detail["lessons"]] == ["Alankars"]

    assert (await client.delete(f"{COURSES_URL}/courses/{course_id}")).status_code == 200
    assert (await client.get(f"{COURSES_URL}/courses")).json()["data"] == []


async def test_lesson_for_missing_course(client):
    response = await client.post(
        f"{COURSES_URL}/courses/{uuid.uuid4()}/lessons",
        json={"title": "Orphan"},
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Course not found"
