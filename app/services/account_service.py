"""
Student, teacher and admin accounts.

Students register and sign in with mobile number + OTP; teachers with mobile
number + password; admins with email + password. All receive the same kind of
JWT access token, told apart by the account_type claim.
"""
from typing import List, Optional, Tuple
import uuid
import logging

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.core.security import create_access_token, get_password_hash, verify_password
from app.db_types import utc_now
from app.models.admin import Admin
from app.models.teacher import Teacher
from app.models.user import User
from app.schemas.account import (
    AdminRegister,
    TeacherRegister,
    TeacherUpdate,
    UserRegister,
    UserUpdate,
)
from app.services.otp_service import OTPService, send_otp_sms

logger = logging.getLogger(__name__)

STUDENT = "student"
TEACHER = "teacher"
ADMIN = "admin"


def issue_token(account_id: uuid.UUID, account_type: str) -> Tuple[str, int]:
    """Returns (access_token, expires_in_seconds)."""
    token = create_access_token(account_id, account_type)
    return token, settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


class UserService:
    """Student accounts with OTP sign-in."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.otp = OTPService(db)

    async def get_by_mobile(self, mobile: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.mobile == mobile))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def _check_unique(
        self,
        mobile: Optional[str],
        email: Optional[str],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        clauses = []
        if mobile:
            clauses.append(User.mobile == mobile)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return

        stmt = select(User).where(or_(*clauses))
        if exclude_id:
            stmt = stmt.where(User.id != exclude_id)
        for existing in (await self.db.execute(stmt)).scalars().all():
            if mobile and existing.mobile == mobile:
                raise ConflictError("Mobile number is already registered")
            if email and existing.email == email:
                raise ConflictError("Email address is already registered")

    async def send_login_otp(self, user: User, purpose: str) -> str:
        otp_code, _ = await self.otp.create_otp(user.mobile, purpose)
        sent = await send_otp_sms(user.mobile, otp_code)
        if not sent:
            logger.warning(f"OTP SMS delivery failed for user {user.id}")
        return otp_code

    async def register(self, data: UserRegister) -> Tuple[User, str]:
        """Create the account and send the first OTP. Returns (user, otp)."""
        email = str(data.email).lower() if data.email else None
        await self._check_unique(data.mobile, email)

        user = User(name=data.name, email=email, mobile=data.mobile)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Mobile number is already registered")

        await self.db.refresh(user)
        logger.info(f"User registered: {user.id}")
        otp_code = await self.send_login_otp(user, "register")
        return user, otp_code

    async def request_login(self, mobile: str) -> Tuple[User, str]:
        user = await self.get_by_mobile(mobile)
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user, await self.send_login_otp(user, "login")

    async def verify_login(self, mobile: str, otp_code: str) -> User:
        user = await self.get_by_mobile(mobile)
        if user is None:
            raise NotFoundError("User not found")

        ok, message = await self.otp.verify_otp(mobile, otp_code)
        if not ok:
            # Keep the attempt count; the request session rolls back on error
            await self.db.commit()
            raise ValidationError(message)

        logger.info(f"User {user.id} signed in")
        return user

    async def update_user(self, user_id: uuid.UUID, data: UserUpdate) -> User:
        user = await self.get_user(user_id)
        values = data.model_dump(exclude_unset=True)
        if values.get("email"):
            values["email"] = str(values["email"]).lower()
        await self._check_unique(values.get("mobile"), values.get("email"), exclude_id=user.id)

        for field, value in values.items():
            setattr(user, field, value)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def set_fcm_token(self, user_id: uuid.UUID, token: Optional[str]) -> User:
        user = await self.get_user(user_id)
        user.fcm_token = token or None
        user.fcm_token_updated_at = utc_now()
        await self.db.flush()
        return user


class TeacherService:
    """Teacher accounts with password sign-in."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_mobile(self, mobile_number: str) -> Optional[Teacher]:
        result = await self.db.execute(
            select(Teacher).where(Teacher.mobile_number == mobile_number)
        )
        return result.scalar_one_or_none()

    async def get_teacher(self, teacher_id: uuid.UUID) -> Teacher:
        teacher = await self.db.get(Teacher, teacher_id)
        if teacher is None:
            raise NotFoundError("Teacher not found")
        return teacher

    async def get_teachers(self) -> List[Teacher]:
        result = await self.db.execute(select(Teacher).order_by(Teacher.name))
        return list(result.scalars().all())

    async def register(self, data: TeacherRegister) -> Teacher:
        if await self.get_by_mobile(data.mobile_number):
            raise ConflictError("Mobile number is already registered")

        teacher = Teacher(
            name=data.name,
            mobile_number=data.mobile_number,
            password_hash=get_password_hash(data.password),
            image=data.image,
            bio=data.bio,
        )
        self.db.add(teacher)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Mobile number is already registered")
        await self.db.refresh(teacher)
        logger.info(f"Teacher registered: {teacher.id}")
        return teacher

    async def authenticate(self, mobile_number: str, password: str) -> Teacher:
        teacher = await self.get_by_mobile(mobile_number)
        if teacher is None or not verify_password(password, teacher.password_hash):
            logger.warning(f"Failed teacher login for {mobile_number[-4:].rjust(10, '*')}")
            raise AuthenticationError("Invalid mobile number or password")
        if not teacher.is_active:
            raise AuthenticationError("Account is deactivated")
        return teacher

    async def update_teacher(self, teacher_id: uuid.UUID, data: TeacherUpdate) -> Teacher:
        teacher = await self.get_teacher(teacher_id)
        values = data.model_dump(exclude_unset=True)

        mobile_number = values.get("mobile_number")
        if mobile_number and mobile_number != teacher.mobile_number:
            if await self.get_by_mobile(mobile_number):
                raise ConflictError("Mobile number is already registered")

        password = values.pop("password", None)
        if password:
            teacher.password_hash = get_password_hash(password)

        for field, value in values.items():
            setattr(teacher, field, value)
        await self.db.flush()
        await self.db.refresh(teacher)
        return teacher

    async def set_fcm_token(self, teacher_id: uuid.UUID, token: Optional[str]) -> Teacher:
        teacher = await self.get_teacher(teacher_id)
        teacher.fcm_token = token or None
        teacher.fcm_token_updated_at = utc_now()
        await self.db.flush()
        return teacher


class AdminService:
    """Back-office accounts with email + password sign-in."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[Admin]:
        result = await self.db.execute(select(Admin).where(Admin.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, data: AdminRegister) -> Admin:
        email = str(data.email).lower()
        if await self.get_by_email(email):
            raise ConflictError("Admin already exists")

        admin = Admin(email=email, password_hash=get_password_hash(data.password))
        self.db.add(admin)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Admin already exists")
        await self.db.refresh(admin)
        logger.info(f"Admin registered: {admin.id}")
        return admin

    async def authenticate(self, email: str, password: str) -> Admin:
        admin = await self.get_by_email(email)
        if admin is None:
            raise NotFoundError("Admin not found")
        if not verify_password(password, admin.password_hash):
            logger.warning(f"Failed admin login for {admin.id}")
            raise AuthenticationError("Invalid password")
        if not admin.is_active:
            raise AuthenticationError("Account is deactivated")
        return admin
