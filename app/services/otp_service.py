"""
OTP Service for student authentication

Handles OTP generation, sending via SMS, and verification.
"""

import logging
from datetime import timedelta
from typing import Tuple

import httpx
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.security import generate_otp, hash_otp
from app.db_types import utc_now
from app.models.otp import LoginOTP

logger = logging.getLogger(__name__)

MSG91_FLOW_URL = "https://control.msg91.com/api/v5/flow/"


def mask_mobile(mobile: str) -> str:
    return mobile[-4:].rjust(10, '*')


class OTPService:
    """
    Service for handling OTP operations.
    """

    OTP_LENGTH = 6
    MAX_ATTEMPTS = 3

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_otp(self, mobile: str, purpose: str = "login") -> Tuple[str, LoginOTP]:
        """
        Create a new OTP for the given mobile number.

        Any earlier unverified OTP for the same mobile and purpose is discarded.

        Returns:
            Tuple of (otp_code, otp_record)
        """
        await self.db.execute(
            delete(LoginOTP).where(
                LoginOTP.mobile == mobile,
                LoginOTP.purpose == purpose,
                LoginOTP.is_verified == False  # noqa: E712
            )
        )

        otp_code = generate_otp(self.OTP_LENGTH)
        otp_record = LoginOTP(
            mobile=mobile,
            otp_hash=hash_otp(otp_code),
            purpose=purpose,
            expires_at=utc_now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
            max_attempts=self.MAX_ATTEMPTS
        )
        self.db.add(otp_record)
        await self.db.flush()

        logger.info(f"OTP created for mobile {mask_mobile(mobile)} purpose={purpose}")
        return otp_code, otp_record

    async def verify_otp(self, mobile: str, otp_code: str) -> Tuple[bool, str]:
        """
        Verify the latest unverified OTP for a mobile number.

        Returns:
            Tuple of (success, message)
        """
        result = await self.db.execute(
            select(LoginOTP)
            .where(
                LoginOTP.mobile == mobile,
                LoginOTP.is_verified == False  # noqa: E712
            )
            .order_by(LoginOTP.created_at.desc())
            .limit(1)
        )
        otp_record = result.scalar_one_or_none()

        if not otp_record:
            logger.warning(f"No OTP found for mobile {mask_mobile(mobile)}")
            return False, "Invalid OTP"

        if otp_record.is_expired:
            logger.warning(f"OTP expired for mobile {mask_mobile(mobile)}")
            return False, "OTP expired"

        if not otp_record.can_attempt:
            logger.warning(f"Max attempts exceeded for mobile {mask_mobile(mobile)}")
            return False, "Maximum attempts exceeded. Please request a new OTP."

        otp_record.attempts += 1

        if hash_otp(otp_code) != otp_record.otp_hash:
            await self.db.flush()
            remaining = otp_record.max_attempts - otp_record.attempts
            logger.warning(f"Invalid OTP attempt for mobile {mask_mobile(mobile)}, {remaining} left")
            return False, "Invalid OTP"

        otp_record.is_verified = True
        otp_record.verified_at = utc_now()
        await self.db.flush()

        logger.info(f"OTP verified for mobile {mask_mobile(mobile)}")
        return True, "OTP verified successfully."


async def send_otp_sms(mobile: str, otp: str) -> bool:
    """
    Send OTP via SMS using MSG91.

    Returns:
        True if sent (or logged in dev mode), False otherwise
    """
    auth_key = settings.MSG91_AUTH_KEY
    template_id = settings.MSG91_TEMPLATE_ID_OTP

    if not auth_key or not template_id:
        logger.warning("MSG91 not configured, OTP SMS not sent")
        logger.info(f"DEV MODE - OTP for {mobile}: {otp}")
        return True

    formatted = mobile.replace("+", "")
    if not formatted.startswith("91") or len(formatted) == 10:
        formatted = f"91{formatted}"

    payload = {
        "template_id": template_id,
        "sender": settings.MSG91_SENDER_ID,
        "short_url": "0",
        "recipients": [{"mobiles": formatted, "otp": otp}],
    }
    headers = {"authkey": auth_key, "Content-Type": "application/json"}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(MSG91_FLOW_URL, json=payload, headers=headers, timeout=10)
            response.raise_for_status()
            result = response.json()
    except httpx.HTTPError as e:
        logger.error(f"Failed to send OTP SMS: {e}")
        return False

    if result.get("type") == "success":
        logger.info(f"OTP SMS sent to {mask_mobile(mobile)}")
        return True

    logger.error(f"MSG91 error: {result}")
    return False
