"""
Login OTP Model

Stores OTPs for student registration and login by mobile number.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, UTCDateTime, utc_now


class LoginOTP(Base):
    """
    OTP storage for student authentication.
    OTPs expire after a configured time and have attempt limits.
    """
    __tablename__ = "login_otps"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    mobile: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True
    )

    # SHA-256 of the code, never the code itself
    otp_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    purpose: Mapped[str] = mapped_column(
        String(50),
        default="login",
        nullable=False,
        comment="register, login"
    )

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False
    )
    max_attempts: Mapped[int] = mapped_column(
        Integer,
        default=3,
        nullable=False
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True
    )

    @property
    def is_expired(self) -> bool:
        """Check if OTP has expired."""
        return utc_now() > self.expires_at

    @property
    def can_attempt(self) -> bool:
        """Check if more attempts are allowed."""
        return self.attempts < self.max_attempts and not self.is_expired

    def __repr__(self) -> str:
        return f"<LoginOTP(mobile='{self.mobile}', purpose='{self.purpose}', verified={self.is_verified})>"
