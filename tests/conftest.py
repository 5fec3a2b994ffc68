"""
EventPulse - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator

# Set testing environment before the settings object is built
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['AWS_S3_BASE_URL'] = 'https://eventpulse-test.s3.amazonaws.com/'

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.constants.constants import UserRole
from app.core.database import session_manager
from app.core.security import create_jwt_token, hash_password
from app.models.event import Event
from app.models.user import User

TEST_PASSWORD = 'correct-horse-battery'


class FakeHandle:
    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeClock:
    """Deterministic stand-in for ``loop.call_later``."""

    def __init__(self):
        self.now = 0.0
        self._timers = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self._timers.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._timers if not h.cancelled]

    def advance(self, seconds: float):
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def database(tmp_path):
    """A fresh sqlite database per test, wired into the app's session manager."""
    await session_manager.init(f"sqlite+aiosqlite:///{tmp_path / 'eventpulse.db'}")
    yield session_manager
    await session_manager.close()


@pytest.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make_user(email: str, role: UserRole = UserRole.attendee, name: str = None,
                         password: str = TEST_PASSWORD) -> User:
        user = User(
            name=name or email.split('@')[0].title(),
            email=email,
            password=hash_password(password),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_event(db_session: AsyncSession):
    async def _make_event(host: User, title: str = 'Launch Night', hours: int = 3) -> Event:
        start = datetime(2026, 3, 14, 18, 0)
        event = Event(
            title=title,
            location='Main Hall',
            start_time=start,
            end_time=start + timedelta(hours=hours),
            host_id=host.id,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event
    return _make_event


def auth_headers(user: User) -> dict:
    token = create_jwt_token({'sub': str(user.id), 'email': user.email, 'role': user.role.value})
    return {'Authorization': f'Bearer {token}'}
