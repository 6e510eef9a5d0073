"""Schemas for student and teacher accounts and sign-in."""
from datetime import datetime
from typing import Annotated, Optional
import re
import uuid

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from app.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema


MOBILE_PATTERN = re.compile(r"^\d{10}$")


def _validate_mobile(v: str) -> str:
    v = v.strip()
    if not MOBILE_PATTERN.match(v):
        raise ValueError("Invalid mobile number format. Please enter a 10-digit mobile number.")
    return v


MobileNumber = Annotated[str, AfterValidator(_validate_mobile)]


# ==================== Students ====================

class UserRegister(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    mobile: MobileNumber


class UserUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    mobile: Optional[MobileNumber] = None
    image: Optional[str] = Field(None, max_length=500)


class OTPLoginRequest(BaseCreateSchema):
    mobile: MobileNumber


class OTPVerifyRequest(BaseCreateSchema):
    mobile: str
    otp: str = Field(..., min_length=4, max_length=8)


class OTPSentResponse(BaseModel):
    success: bool = True
    message: str
    user_id: Optional[uuid.UUID] = None
    expires_in_seconds: int
    # Only populated outside production
    otp: Optional[str] = None


class UserResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    mobile: str
    image: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ==================== Teachers ====================

class TeacherRegister(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    mobile_number: MobileNumber
    password: str = Field(..., min_length=6, max_length=128)
    image: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = None


class TeacherLogin(BaseCreateSchema):
    mobile_number: str
    password: str


class TeacherUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    mobile_number: Optional[MobileNumber] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    image: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = None


class TeacherResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    mobile_number: str
    image: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ==================== Tokens ====================

class FCMTokenUpdate(BaseCreateSchema):
    fcm_token: Optional[str] = Field(None, max_length=500)


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account_type: str
    user: Optional[UserResponse] = None
    teacher: Optional[TeacherResponse] = None


# ==================== Admins ====================

class AdminRegister(BaseCreateSchema):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class AdminLogin(BaseCreateSchema):
    email: EmailStr
    password: str


class AdminResponse(BaseResponseSchema):
    id: uuid.UUID
    email: str
    is_active: bool
    created_at: datetime


class AdminAuthResponse(BaseModel):
    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    account_type: str
    admin: AdminResponse
