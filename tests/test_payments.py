import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError
from app.models.offer import Offer
from app.models.payment import Payment
from app.schemas.payment import PaymentDetailsInput
from app.services.payment_service import PaymentService, generate_transaction_id

PAYMENT_URL = "/chinthanaprabha/payment"


@pytest.fixture
async def buyer(seed):
    return {"user": await seed.user(), "course": await seed.course(price="1000")}


def purchase(buyer, card_details, **overrides):
    payload = {
        "courseId": str(buyer["course"].id),
        "userId": str(buyer["user"].id),
        "paymentMethod": "credit_card",
        "paymentDetails": card_details,
    }
    payload.update(overrides)
    return payload


async def test_breakdown_without_coupon(client, buyer):
    response = await client.post(f"{PAYMENT_URL}/calculate-breakdown/{buyer['course'].id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["original_base_amount"] == 1000
    assert data["discount_amount"] == 0
    assert data["tax_amount"] == 100
    assert data["gst_amount"] == 180
    assert data["total_amount"] == 1280
    assert data["tax_rate"] == 10
    assert data["gst_rate"] == 18


async def test_breakdown_with_percentage_coupon(client, buyer, seed):
    await seed.offer("SAVE10", discount_percentage=Decimal("10"))

    response = await client.post(
        f"{PAYMENT_URL}/calculate-breakdown/{buyer['course'].id}",
        json={"couponCode": "SAVE10"},
    )

    data = response.json()["data"]
    assert data["discount_amount"] == 100
    assert data["base_amount"] == 900
    assert data["tax_amount"] == 90
    assert data["gst_amount"] == 162
    assert data["total_amount"] == 1152
    assert data["coupon_code_applied"] == "SAVE10"


async def test_breakdown_for_missing_course(client):
    response = await client.post(f"{PAYMENT_URL}/calculate-breakdown/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["message"] == "Course not found."


async def test_process_payment(client, buyer, card_details):
    response = await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Payment processed successfully."
    payment = body["payment"]
    assert payment["status"] == "completed"
    assert payment["base_amount"] == 1000
    assert payment["total_amount"] == 1280
    assert payment["transaction_id"].startswith("TXN-")
    assert payment["payment_details"]["card_number"] == "**** **** **** 1234"
    assert "cvv" not in payment["payment_details"]
    assert payment["course"]["name"] == "Carnatic Basics"


async def test_cvv_is_never_stored(client, buyer, card_details, session_factory):
    await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))

    async with session_factory() as session:
        payment = (await session.execute(select(Payment))).scalar_one()
    assert "cvv" not in payment.payment_details
    assert payment.payment_details["card_number"] == "4111111111111234"


async def test_second_purchase_is_rejected(client, buyer, card_details):
    first = await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))
    assert first.status_code == 201

    second = await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))

    assert second.status_code == 400
    assert second.json()["message"] == "Course already purchased by this user."


async def test_coupon_is_redeemed_once(client, buyer, card_details, seed, session_factory):
    offer = await seed.offer("ONCE", usage_limit=1)

    response = await client.post(
        f"{PAYMENT_URL}/process-payment",
        json=purchase(buyer, card_details, couponCode="ONCE"),
    )
    assert response.status_code == 201
    assert response.json()["payment"]["total_amount"] == 1152
    assert response.json()["payment"]["coupon_code_applied"] == "ONCE"

    async with session_factory() as session:
        assert (await session.get(Offer, offer.id)).used_count == 1

    other_course = await seed.course("Veena Level 1", price="2000")
    again = await client.post(
        f"{PAYMENT_URL}/process-payment",
        json=purchase(buyer, card_details, courseId=str(other_course.id), couponCode="ONCE"),
    )
    assert again.status_code == 400
    assert again.json()["message"] == "Coupon code usage limit exceeded."


@pytest.mark.parametrize("method,details,message", [
    ("credit_card", {"cardNumber": "4111"}, "Card number, holder name, expiry date, and CVV are required for card payments."),
    ("upi", {}, "UPI ID is required for UPI payments."),
    ("net_banking", {"upiId": "a@b"}, "Bank name is required for net banking."),
    ("wallet", {}, "Wallet type is required for wallet payments."),
    ("cash", {"walletType": "x"}, "Invalid payment method."),
])
async def test_method_specific_details(client, buyer, method, details, message):
    response = await client.post(
        f"{PAYMENT_URL}/process-payment",
        json=purchase(buyer, details, paymentMethod=method),
    )
    assert response.status_code == 400
    assert response.json()["message"] == message


async def test_required_fields(client):
    response = await client.post(f"{PAYMENT_URL}/process-payment", json={"paymentMethod": "upi"})
    assert response.status_code == 400
    assert response.json()["message"] == "Course ID, User ID, and Payment Method are required."


async def test_missing_details(client, buyer):
    payload = purchase(buyer, None, paymentMethod="upi")
    del payload["paymentDetails"]
    response = await client.post(f"{PAYMENT_URL}/process-payment", json=payload)
    assert response.json()["message"] == "Payment details are required."


async def test_unique_index_blocks_duplicate_completed_payment(db, seed):
    user = await seed.user()
    course = await seed.course()
    service = PaymentService(db)
    details = PaymentDetailsInput(upi_id="asha@upi")

    await service.process_payment(course.id, user.id, "upi", details)

    # Bypass the friendly pre-check to exercise the constraint itself
    service.has_completed_purchase = _never_purchased
    with pytest.raises(ConflictError):
        await service.process_payment(course.id, user.id, "upi", details)


async def _never_purchased(user_id, course_id):
    return False


def test_transaction_id_format():
    txn = generate_transaction_id()
    prefix, millis, suffix = txn.split("-")
    assert prefix == "TXN"
    assert millis.isdigit()
    assert len(suffix) == 13
    assert suffix == suffix.lower()


async def test_history_and_purchased_courses(client, buyer, card_details):
    user_id = buyer["user"].id
    empty = await client.get(f"{PAYMENT_URL}/history/{user_id}")
    assert empty.status_code == 404
    assert empty.json()["message"] == "No payment history found for this user."

    await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))

    history = await client.get(f"{PAYMENT_URL}/history/{user_id}")
    assert len(history.json()["data"]) == 1

    purchased = await client.get(f"{PAYMENT_URL}/purchased-courses/{user_id}")
    assert purchased.status_code == 200
    assert purchased.json()["data"][0]["course"]["id"] == str(buyer["course"].id)


async def test_report(client, buyer, card_details, seed):
    empty = await client.get(f"{PAYMENT_URL}/payments/report")
    assert empty.json()["data"]["total_payments"] == 0
    assert empty.json()["data"]["total_amount"] == 0

    await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))
    second_course = await seed.course("Veena Level 1", price="500")
    await client.post(
        f"{PAYMENT_URL}/process-payment",
        json=purchase(buyer, {"upiId": "asha@upi"}, courseId=str(second_course.id), paymentMethod="upi"),
    )

    report = (await client.get(f"{PAYMENT_URL}/payments/report")).json()["data"]
    assert report["total_payments"] == 2
    assert report["total_base_amount"] == 1500
    assert report["total_tax_amount"] == 150
    assert report["total_gst_amount"] == 270
    assert report["total_amount"] == 1920
    assert report["payment_method_breakdown"] == {
        "credit_card": {"count": 1, "total_amount": 1280},
        "upi": {"count": 1, "total_amount": 640},
    }

    only_upi = (await client.get(f"{PAYMENT_URL}/payments/report", params={"paymentMethod": "upi"})).json()["data"]
    assert only_upi["total_payments"] == 1


async def test_admin_updates(client, buyer, card_details):
    payment = (await client.post(f"{PAYMENT_URL}/process-payment", json=purchase(buyer, card_details))).json()["payment"]
    url = f"{PAYMENT_URL}/payments/{payment['id']}"

    bad_status = await client.put(f"{url}/status", json={"status": "refunded"})
    assert bad_status.status_code == 400
    assert bad_status.json()["message"] == "Invalid status value."

    failed = await client.put(f"{url}/status", json={"status": "failed"})
    assert failed.json()["data"]["status"] == "failed"

    listed = await client.get(f"{PAYMENT_URL}/payments", params={"status": "failed"})
    assert len(listed.json()["data"]) == 1

    mismatch = await client.put(url, json={
        "baseAmount": 1000, "taxAmount": 100, "gstAmount": 180, "totalAmount": 1300,
        "paymentMethod": "credit_card", "status": "completed",
    })
    assert mismatch.status_code == 400
    assert mismatch.json()["message"] == "Total amount does not match calculated sum (base - discount + tax + GST)."

    corrected = await client.put(url, json={
        "baseAmount": 1000, "discountApplied": 100, "taxAmount": 90, "gstAmount": 162,
        "totalAmount": 1152, "paymentMethod": "credit_card", "status": "completed",
    })
    assert corrected.status_code == 200
    assert corrected.json()["data"]["total_amount"] == 1152
