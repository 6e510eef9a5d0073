"""
Student authentication: register / login by mobile number, confirmed by OTP.
"""
from typing import List
import uuid

from fastapi import APIRouter, status

from app.api.deps import DB, CurrentAccount
from app.config import settings
from app.schemas.account import (
    UserRegister,
    UserUpdate,
    UserResponse,
    OTPLoginRequest,
    OTPVerifyRequest,
    OTPSentResponse,
    FCMTokenUpdate,
    AuthResponse,
)
from app.schemas.base import DataResponse, MessageResponse
from app.services.account_service import STUDENT, UserService, issue_token

router = APIRouter(tags=["Student Auth"])


def otp_sent(message: str, user_id: uuid.UUID, otp_code: str) -> OTPSentResponse:
    return OTPSentResponse(
        message=message,
        user_id=user_id,
        expires_in_seconds=settings.OTP_EXPIRY_MINUTES * 60,
        # Echoed back for local testing only
        otp=otp_code if settings.is_development else None,
    )


@router.post("/register", response_model=OTPSentResponse, status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, db: DB):
    """Create a student account and send the verification OTP."""
    user, otp_code = await UserService(db).register(data)
    return otp_sent("User registered successfully. OTP sent to your mobile number.", user.id, otp_code)


@router.post("/login", response_model=OTPSentResponse)
async def login(data: OTPLoginRequest, db: DB):
    """Send a sign-in OTP to a registered mobile number."""
    user, otp_code = await UserService(db).request_login(data.mobile)
    return otp_sent("OTP sent to your mobile number.", user.id, otp_code)


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(data: OTPVerifyRequest, db: DB):
    """Exchange a valid OTP for an access token."""
    user = await UserService(db).verify_login(data.mobile, data.otp)
    token, expires_in = issue_token(user.id, STUDENT)
    return AuthResponse(
        message="OTP verified successfully.",
        access_token=token,
        expires_in=expires_in,
        account_type=STUDENT,
        user=UserResponse.model_validate(user),
    )


@router.get("/user/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(user_id: uuid.UUID, db: DB):
    user = await UserService(db).get_user(user_id)
    return DataResponse(data=UserResponse.model_validate(user))


@router.put("/user/update/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(user_id: uuid.UUID, data: UserUpdate, db: DB):
    user = await UserService(db).update_user(user_id, data)
    return DataResponse(
        message="User updated successfully",
        data=UserResponse.model_validate(user),
    )


@router.get("/users", response_model=DataResponse[List[UserResponse]])
async def list_users(db: DB):
    users = await UserService(db).get_users()
    return DataResponse(data=[UserResponse.model_validate(u) for u in users])


@router.put("/user/{user_id}/fcm-token", response_model=MessageResponse)
async def update_fcm_token(user_id: uuid.UUID, data: FCMTokenUpdate, db: DB, account: CurrentAccount):
    """Register (or clear, with an empty token) the device used for push."""
    account.require(user_id, STUDENT)
    await UserService(db).set_fcm_token(user_id, data.fcm_token)
    return MessageResponse(message="FCM token updated successfully")
