from datetime import timedelta

from sqlalchemy import select

from app.core.security import verify_access_token
from app.db_types import utc_now
from app.models.otp import LoginOTP

USER_URL = "/chinthanaprabha/user-auth"
TEACHER_URL = "/chinthanaprabha/teacher-auth"
ADMIN_URL = "/chinthanaprabha/admin-auth"


async def register_and_verify(client, mobile="9876543210"):
    registered = await client.post(
        f"{USER_URL}/register",
        json={"name": "Asha", "email": "Asha@Example.com", "mobile": mobile},
    )
    assert registered.status_code == 201
    otp = registered.json()["otp"]
    verified = await client.post(f"{USER_URL}/verify-otp", json={"mobile": mobile, "otp": otp})
    assert verified.status_code == 200
    return verified.json()


async def test_register_then_verify_issues_student_token(client):
    body = await register_and_verify(client)

    assert body["account_type"] == "student"
    assert body["user"]["email"] == "asha@example.com"
    payload = verify_access_token(body["access_token"])
    assert payload["sub"] == body["user"]["id"]
    assert payload["account_type"] == "student"


async def test_duplicate_registration(client):
    await register_and_verify(client)

    response = await client.post(
        f"{USER_URL}/register",
        json={"name": "Other", "mobile": "9876543210"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Mobile number is already registered"

    response = await client.post(
        f"{USER_URL}/register",
        json={"name": "Other", "email": "asha@example.com", "mobile": "9000000000"},
    )
    assert response.json()["message"] == "Email address is already registered"


async def test_invalid_mobile_format(client):
    response = await client.post(f"{USER_URL}/register", json={"name": "Asha", "mobile": "12345"})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


async def test_login_sends_otp_and_wrong_otp_fails(client, seed):
    await seed.user(mobile="9876543210")

    login = await client.post(f"{USER_URL}/login", json={"mobile": "9876543210"})
    assert login.status_code == 200
    otp = login.json()["otp"]
    wrong = "000000" if otp != "000000" else "111111"

    bad = await client.post(f"{USER_URL}/verify-otp", json={"mobile": "9876543210", "otp": wrong})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid OTP"

    good = await client.post(f"{USER_URL}/verify-otp", json={"mobile": "9876543210", "otp": otp})
    assert good.status_code == 200


async def test_login_unknown_mobile(client):
    response = await client.post(f"{USER_URL}/login", json={"mobile": "9999999999"})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


async def test_expired_otp(client, seed, session_factory):
    await seed.user(mobile="9876543210")
    otp = (await client.post(f"{USER_URL}/login", json={"mobile": "9876543210"})).json()["otp"]

    async with session_factory() as session:
        record = (await session.execute(select(LoginOTP))).scalar_one()
        record.expires_at = utc_now() - timedelta(minutes=1)
        await session.commit()

    response = await client.post(f"{USER_URL}/verify-otp", json={"mobile": "9876543210", "otp": otp})
    assert response.status_code == 400
    assert response.json()["message"] == "OTP expired"


async def test_user_profile_and_fcm_token(client):
    body = await register_and_verify(client)
    user_id = body["user"]["id"]
    headers = {"Authorization": f"Bearer {body['access_token']}"}

    updated = await client.put(f"{USER_URL}/user/update/{user_id}", json={"name": "Asha K"})
    assert updated.json()["data"]["name"] == "Asha K"

    fetched = await client.get(f"{USER_URL}/user/{user_id}")
    assert fetched.json()["data"]["name"] == "Asha K"

    unauthenticated = await client.put(f"{USER_URL}/user/{user_id}/fcm-token", json={"fcmToken": "tok"})
    assert unauthenticated.status_code in (401, 403)

    token = await client.put(f"{USER_URL}/user/{user_id}/fcm-token", json={"fcmToken": "tok"}, headers=headers)
    assert token.status_code == 200

    users = await client.get(f"{USER_URL}/users")
    assert len(users.json()["data"]) == 1


async def test_teacher_register_and_login(client):
    registered = await client.post(
        f"{TEACHER_URL}/register",
        json={"name": "Ravi", "mobileNumber": "9123456780", "password": "secret123"},
    )
    assert registered.status_code == 201
    teacher_id = registered.json()["data"]["id"]
    assert "password" not in registered.json()["data"]

    bad = await client.post(f"{TEACHER_URL}/login", json={"mobileNumber": "9123456780", "password": "nope"})
    assert bad.status_code == 401

    good = await client.post(f"{TEACHER_URL}/login", json={"mobileNumber": "9123456780", "password": "secret123"})
    assert good.status_code == 200
    body = good.json()
    assert body["account_type"] == "teacher"
    assert body["teacher"]["id"] == teacher_id

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    other = await client.put(
        f"{TEACHER_URL}/teacher/00000000-0000-0000-0000-000000000000/fcm-token",
        json={"fcmToken": "tok"},
        headers=headers,
    )
    assert other.status_code == 403

    own = await client.put(f"{TEACHER_URL}/teacher/{teacher_id}/fcm-token", json={"fcmToken": "tok"}, headers=headers)
    assert own.status_code == 200


async def test_teacher_update_password(client, seed):
    teacher = await seed.teacher(password="secret123")

    response = await client.put(f"{TEACHER_URL}/teacher/{teacher.id}", json={"password": "newsecret", "bio": "Vocalist"})
    assert response.json()["data"]["bio"] == "Vocalist"

    login = await client.post(f"{TEACHER_URL}/login", json={"mobileNumber": teacher.mobile_number, "password": "newsecret"})
    assert login.status_code == 200

    teachers = await client.get(f"{TEACHER_URL}/teachers")
    assert [t["name"] for t in teachers.json()["data"]] == ["Ravi"]


async def test_wrong_otp_attempts_are_limited(client, seed):
    await seed.user(mobile="9876543210")
    otp = (await client.post(f"{USER_URL}/login", json={"mobile": "9876543210"})).json()["otp"]
    wrong = "000000" if otp != "000000" else "111111"

    for _ in range(3):
        await client.post(f"{USER_URL}/verify-otp", json={"mobile": "9876543210", "otp": wrong})

    response = await client.post(f"{USER_URL}/verify-otp", json={"mobile": "9876543210", "otp": otp})
    assert response.status_code == 400
    assert response.json()["message"] == "Maximum attempts exceeded. Please request a new OTP."


async def test_admin_register_and_login(client):
    registered = await client.post(
        f"{ADMIN_URL}/register",
        json={"email": "Office@Chinthanaprabha.in", "password": "secret123"},
    )
    assert registered.status_code == 201
    body = registered.json()
    assert body["account_type"] == "admin"
    assert body["admin"]["email"] == "office@chinthanaprabha.in"
    assert verify_access_token(body["access_token"])["account_type"] == "admin"

    duplicate = await client.post(
        f"{ADMIN_URL}/register",
        json={"email": "office@chinthanaprabha.in", "password": "another123"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Admin already exists"

    login = await client.post(
        f"{ADMIN_URL}/login",
        json={"email": "OFFICE@chinthanaprabha.in", "password": "secret123"},
    )
    assert login.status_code == 200
    assert login.json()["admin"]["id"] == body["admin"]["id"]


async def test_admin_login_failures(client):
    await client.post(f"{ADMIN_URL}/register", json={"email": "office@example.com", "password": "secret123"})

    unknown = await client.post(f"{ADMIN_URL}/login", json={"email": "nobody@example.com", "password": "secret123"})
    assert unknown.status_code == 404
    assert unknown.json()["message"] == "Admin not found"

    wrong = await client.post(f"{ADMIN_URL}/login", json={"email": "office@example.com", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid password"

    short = await client.post(f"{ADMIN_URL}/register", json={"email": "new@example.com", "password": "123"})
    assert short.status_code == 400
