"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database shared by the API client
and the direct service fixtures, plus a fake push gateway that records what
would have been sent to FCM.
"""
import os
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator, Any, Dict, List, Optional, Set

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, custom_json_dumps, get_db, register_models
from app.db_types import utc_now
from app.models.category import Category
from app.models.course import Course, Lesson
from app.models.instrument import Instrument
from app.models.offer import Offer
from app.models.teacher import Teacher
from app.models.user import User
from app.core.exceptions import ExternalServiceError
from app.core.security import get_password_hash
from app.services.push_gateway import PushMessage, PushResult, get_push_gateway


class FakePushGateway:
    """Stands in for FirebasePushGateway; records every batch."""

    def __init__(self):
        self.enabled = True
        self.batches: List[List[PushMessage]] = []
        self.invalid_tokens: Set[str] = set()
        self.failing_batches: Set[int] = set()

    @property
    def sent(self) -> List[PushMessage]:
        return [message for batch in self.batches for message in batch]

    async def send_each(self, messages: List[PushMessage]) -> List[PushResult]:
        self.batches.append(list(messages))
        if len(self.batches) - 1 in self.failing_batches:
            raise ExternalServiceError("FCM send failed: unavailable")
        return [
            PushResult(
                token=m.token,
                success=m.token not in self.invalid_tokens,
                error="Requested entity was not found." if m.token in self.invalid_tokens else None,
                is_invalid_token=m.token in self.invalid_tokens,
            )
            for m in messages
        ]


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, Any]:
    """Fresh schema on a single shared in-memory connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        json_serializer=custom_json_dumps,
    )
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, Any]:
    """Session for calling services directly."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def push_gateway() -> FakePushGateway:
    return FakePushGateway()


@pytest_asyncio.fixture
async def client(session_factory, push_gateway) -> AsyncGenerator[AsyncClient, Any]:
    """HTTP client against the app with the test database and fake push gateway."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_gateway] = lambda: push_gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Seed data ====================

class Seeder:
    """Inserts committed rows the API tests can see."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _add(self, obj):
        async with self.session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def user(self, name: str = "Asha", mobile: str = "9876543210", fcm_token: Optional[str] = None) -> User:
        return await self._add(User(name=name, mobile=mobile, fcm_token=fcm_token))

    async def teacher(
        self,
        name: str = "Ravi",
        mobile_number: str = "9123456780",
        password: str = "secret123",
        fcm_token: Optional[str] = None,
    ) -> Teacher:
        return await self._add(Teacher(
            name=name,
            mobile_number=mobile_number,
            password_hash=get_password_hash(password),
            fcm_token=fcm_token,
        ))

    async def category(self, name: str = "Strings") -> Category:
        return await self._add(Category(name=name, sub_categories=["Violin", "Veena"]))

    async def instrument(self, name: str = "Violin", price: str = "500", gst: str = "0", **kwargs) -> Instrument:
        return await self._add(Instrument(name=name, price=Decimal(price), gst=Decimal(gst), **kwargs))

    async def course(self, name: str = "Carnatic Basics", price: str = "1000") -> Course:
        return await self._add(Course(name=name, price=Decimal(price), instructor="Ravi"))

    async def lesson(self, course: Course, title: str, position: int, is_locked: bool = False) -> Lesson:
        return await self._add(Lesson(course_id=course.id, title=title, position=position, is_locked=is_locked))

    async def offer(self, coupon_code: str = "SAVE10", **kwargs: Dict[str, Any]) -> Offer:
        values = {
            "discount_percentage": Decimal("10"),
            "valid_from": utc_now() - timedelta(days=1),
            "valid_until": utc_now() + timedelta(days=30),
        }
        values.update(kwargs)
        return await self._add(Offer(coupon_code=coupon_code, **values))


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def card_details() -> Dict[str, Any]:
    return {
        "cardNumber": "4111 1111 1111 1234",
        "cardHolderName": "Asha K",
        "expiryMonth": "12",
        "expiryYear": "2030",
        "cvv": "123",
    }
