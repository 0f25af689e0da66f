import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rideway.core.security import TokenIssuer
from rideway.db.models import otp_code, product, user  # noqa: F401
from rideway.db.session import Base
from rideway.services.auth import AuthService
from rideway.services.email import CooldownCache, EmailService
from rideway.services.geo import GeoLocation, GeoRestrictionChecker, LocationServiceError


class RecordingTransport:
    """Mail transport that remembers every message and can fail on demand."""

    def __init__(self, fail_times=0):
        self.fail_times = fail_times
        self.attempts = 0
        self.sent = []

    async def send_message(self, to, subject, html):
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise ConnectionError(f"smtp unavailable (attempt {self.attempts})")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"<msg-{len(self.sent)}@test>"


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeGeoLookup:
    def __init__(self, country_code="US", country="United States", error=False):
        self.country_code = country_code
        self.country = country
        self.error = error
        self.calls = []

    async def get_user_location(self, ip):
        self.calls.append(ip)
        if self.error:
            raise LocationServiceError("Failed to fetch location data")
        return GeoLocation(country=self.country, country_code=self.country_code, city="Springfield", ip=ip)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def email_service(transport, clock, sleeps):
    async def fake_sleep(delay):
        sleeps.append(delay)

    return EmailService(
        transport,
        cooldown=CooldownCache(300, clock=clock),
        max_retries=3,
        otp_expiry_minutes=10,
        sleep=fake_sleep,
    )


@pytest.fixture
def token_issuer():
    return TokenIssuer("test-secret", expire_minutes=60)


@pytest.fixture
def geo_lookup():
    return FakeGeoLookup()


@pytest.fixture
def auth_service(session_factory, email_service, token_issuer, geo_lookup):
    return AuthService(
        session_factory,
        email_service,
        GeoRestrictionChecker(["SY", "AF", "IR", "KP", "CU"]),
        token_issuer,
        geo_lookup=geo_lookup,
        otp_length=6,
        otp_expiry_minutes=10,
        expose_otp=True,
    )


@pytest.fixture
def signup_data():
    return {"email": "rider@example.com", "password": "s3cret-pass", "name": "Rider One"}


@pytest.fixture
async def verified_user(auth_service, signup_data):
    registered = await auth_service.register(signup_data, country_code="US")
    user_id = registered.data["user_id"]
    verified = await auth_service.verify_otp(user_id, registered.data["otp"])
    assert verified.success
    return verified.data["user"]
