import uuid

PRACTISE_URL = "/chinthanaprabha/practise"
COURSES_URL = "/chinthanaprabha/courses-lessons"


async def seed_course_with_locked_lessons(seed):
    course = await seed.course()
    first = await seed.lesson(course, "Sargam", 0)
    second = await seed.lesson(course, "Alankars", 1, is_locked=True)
    third = await seed.lesson(course, "Geethams", 2, is_locked=True)
    return course, first, second, third


async def lesson_locks(client, course_id):
    detail = (await client.get(f"{COURSES_URL}/courses/{course_id}")).json()["data"]
    return {lesson["title"]: lesson["is_locked"] for lesson in detail["lessons"]}


async def upload(client, lesson_id, user_id, url="https://videos.example.com/take1.mp4"):
    return await client.post(f"{PRACTISE_URL}/upload", json={
        "lessonId": str(lesson_id),
        "userId": str(user_id),
        "videoUrl": url,
    })


async def test_upload_then_reupload_resets_review(client, seed):
    user = await seed.user()
    _, lesson, _, _ = await seed_course_with_locked_lessons(seed)

    created = await upload(client, lesson.id, user.id)
    assert created.status_code == 201
    assert created.json()["message"] == "Practice video uploaded successfully"
    video = created.json()["data"]
    assert video["status"] == "pending"
    assert video["lesson_title"] == "Sargam"
    assert video["user_name"] == "Asha"

    reviewed = await client.put(
        f"{PRACTISE_URL}/approve-reject/{video['id']}",
        json={"status": "rejected", "rating": 2},
    )
    assert reviewed.json()["message"] == "Practice video rejected"
    assert reviewed.json()["data"]["reviewed_at"] is not None

    again = await upload(client, lesson.id, user.id, url="https://videos.example.com/take2.mp4")
    assert again.status_code == 200
    assert again.json()["message"] == "Practice video re-uploaded successfully"
    body = again.json()["data"]
    assert body["id"] == video["id"]
    assert body["video_url"] == "https://videos.example.com/take2.mp4"
    assert body["status"] == "pending"
    assert body["rating"] == 0
    assert body["reviewed_at"] is None

    listed = await client.get(f"{PRACTISE_URL}/all")
    assert len(listed.json()["data"]) == 1


async def test_upload_requires_lesson_and_user(client, seed):
    user = await seed.user()

    response = await client.post(f"{PRACTISE_URL}/upload", json={
        "userId": str(user.id),
        "videoUrl": "https://videos.example.com/take1.mp4",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Lesson ID and User ID are required"

    unknown = await upload(client, uuid.uuid4(), user.id)
    assert unknown.status_code == 404
    assert unknown.json()["message"] == "Lesson not found"


async def test_high_rated_approval_unlocks_only_the_next_lesson(client, seed):
    user = await seed.user()
    course, first, _, _ = await seed_course_with_locked_lessons(seed)
    video_id = (await upload(client, first.id, user.id)).json()["data"]["id"]

    response = await client.put(
        f"{PRACTISE_URL}/approve-reject/{video_id}",
        json={"status": "approved", "rating": 4},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Practice video approved"

    assert await lesson_locks(client, course.id) == {
        "Sargam": False,
        "Alankars": False,
        "Geethams": True,
    }

    status = await client.get(f"{PRACTISE_URL}/status/{first.id}/{user.id}")
    assert status.json() == {"success": True, "status": "approved", "rating": 4}


async def test_low_rating_or_rejection_keeps_next_lesson_locked(client, seed):
    user = await seed.user()
    course, first, _, _ = await seed_course_with_locked_lessons(seed)
    video_id = (await upload(client, first.id, user.id)).json()["data"]["id"]

    await client.put(f"{PRACTISE_URL}/approve-reject/{video_id}", json={"status": "approved", "rating": 3})
    assert (await lesson_locks(client, course.id))["Alankars"] is True

    await client.put(f"{PRACTISE_URL}/approve-reject/{video_id}", json={"status": "rejected", "rating": 5})
    assert (await lesson_locks(client, course.id))["Alankars"] is True


async def test_review_validation(client, seed):
    user = await seed.user()
    _, first, _, _ = await seed_course_with_locked_lessons(seed)
    video_id = (await upload(client, first.id, user.id)).json()["data"]["id"]

    invalid = await client.put(f"{PRACTISE_URL}/approve-reject/{video_id}", json={"status": "pending"})
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid status"

    out_of_range = await client.put(
        f"{PRACTISE_URL}/approve-reject/{video_id}",
        json={"status": "approved", "rating": 6},
    )
    assert out_of_range.status_code == 400

    missing = await client.put(f"{PRACTISE_URL}/approve-reject/{uuid.uuid4()}", json={"status": "approved"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "Practice video not found"


async def test_status_for_missing_upload(client, seed):
    user = await seed.user()
    _, first, _, _ = await seed_course_with_locked_lessons(seed)

    response = await client.get(f"{PRACTISE_URL}/status/{first.id}/{user.id}")
    assert response.status_code == 404


async def test_review_queue_filters_by_status(client, seed):
    asha = await seed.user()
    meera = await seed.user(name="Meera", mobile="9000000001")
    _, first, _, _ = await seed_course_with_locked_lessons(seed)
    pending_id = (await upload(client, first.id, asha.id)).json()["data"]["id"]
    reviewed_id = (await upload(client, first.id, meera.id)).json()["data"]["id"]
    await client.put(f"{PRACTISE_URL}/approve-reject/{reviewed_id}", json={"status": "approved", "rating": 5})

    pending = await client.get(f"{PRACTISE_URL}/all", params={"status": "pending"})
    assert [v["id"] for v in pending.json()["data"]] == [pending_id]

    everything = await client.get(f"{PRACTISE_URL}/all")
    assert {v["user_name"] for v in everything.json()["data"]} == {"Asha", "Meera"}
