"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Org / user / client / property records
- JWT token minting for authenticated tests
- HTTPX AsyncClient with proper headers
"""
import os
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncGenerator, Generator

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"
os.environ["PLATFORM_RESEND_API_KEY"] = ""
os.environ["FRONTEND_URL"] = "https://app.example.com"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from app.main import app
from app.core.deps import get_db, COOKIE_NAME
from app.core.rate_limit import limiter
from app.core.security import create_session_token
from app.db.base import Base
from app.db.enums import PricingType, Role
from app.db.models import Client, Membership, Organization, Property, User
from app.db.session import engine, SessionLocal
from app.schemas.quote import QuoteWrite
from app.services import quote_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates the schema, yields a session, drops everything afterwards.

    App code commits and rolls back on this same session, so fixtures
    commit their rows to survive a router-level rollback.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield


def make_org(db: Session, *, vat_registered: bool = True, vat_rate: str = "20.00", name: str = "Sparkle & Shine") -> Organization:
    org = Organization(
        id=uuid.uuid4(),
        name=name,
        slug=f"test-org-{uuid.uuid4().hex[:8]}",
        email="hello@sparkle.example.com",
        phone="01234 567890",
        address_line1="1 High Street",
        town="Bath",
        postcode="BA1 1AA",
        vat_registered=vat_registered,
        vat_rate=Decimal(vat_rate),
        vat_number="GB123456789" if vat_registered else None,
    )
    db.add(org)
    db.commit()
    return org


def make_user(db: Session, org: Organization, role: Role = Role.ADMIN) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"test-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Test User",
    )
    db.add(user)
    db.flush()
    db.add(
        Membership(
            id=uuid.uuid4(),
            user_id=user.id,
            organization_id=org.id,
            role=role.value,
        )
    )
    db.commit()
    return user


def make_client(db: Session, org: Organization, email: str | None = "jane@example.com") -> Client:
    client = Client(
        id=uuid.uuid4(),
        organization_id=org.id,
        first_name="Jane",
        last_name="Doe",
        email=email,
        phone="07700 900000",
    )
    db.add(client)
    db.commit()
    return client


def make_property(db: Session, client: Client) -> Property:
    prop = Property(
        id=uuid.uuid4(),
        organization_id=client.organization_id,
        client_id=client.id,
        address_line1="22 Acacia Avenue",
        town="Bath",
        postcode="BA2 2BB",
    )
    db.add(prop)
    db.commit()
    return prop


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """VAT-registered organization at 20%."""
    return make_org(db)


@pytest.fixture(scope="function")
def test_user(db: Session, test_org: Organization) -> User:
    """Admin user with membership in test_org."""
    return make_user(db, test_org)


@pytest.fixture(scope="function")
def test_client_record(db: Session, test_org: Organization) -> Client:
    return make_client(db, test_org)


@pytest.fixture(scope="function")
def test_property(db: Session, test_client_record: Client) -> Property:
    return make_property(db, test_client_record)


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    org: Organization
    token: str
    cookie_name: str = COOKIE_NAME


def mint_token(user: User, org: Organization, role: Role = Role.ADMIN) -> str:
    return create_session_token(
        user_id=user.id,
        org_id=org.id,
        role=role.value,
        token_version=user.token_version,
    )


@pytest.fixture(scope="function")
def test_auth(test_user: User, test_org: Organization) -> TestAuth:
    """Create JWT token for test user."""
    return TestAuth(
        user=test_user,
        org=test_org,
        token=mint_token(test_user, test_org),
    )


# =============================================================================
# Quote Fixtures
# =============================================================================

def create_fixed_quote(
    db: Session,
    org: Organization,
    user: User,
    client: Client,
    price: str = "120.00",
    **overrides,
):
    data = QuoteWrite(
        client_id=client.id,
        title=overrides.pop("title", "Spring clean"),
        pricing_type=PricingType.FIXED,
        fixed_price=Decimal(price),
        **overrides,
    )
    quote = quote_service.create_quote(db, org.id, user.id, data)
    db.commit()
    return quote


@pytest.fixture(scope="function")
def draft_quote(db: Session, test_auth: TestAuth, test_client_record: Client):
    return create_fixed_quote(db, test_auth.org, test_auth.user, test_client_record)


@pytest.fixture(scope="function")
def sent_quote(db: Session, test_auth: TestAuth, draft_quote):
    quote = quote_service.send_quote(db, test_auth.org.id, test_auth.user.id, draft_quote.id)
    db.commit()
    return quote


@pytest.fixture(scope="function")
def quote_factory(db: Session, test_auth: TestAuth, test_client_record: Client):
    """Create fixed-price quotes for test_org: quote_factory(price="99.00", ...)."""

    def factory(price: str = "120.00", client: Client | None = None, **overrides):
        return create_fixed_quote(
            db, test_auth.org, test_auth.user, client or test_client_record, price, **overrides
        )

    return factory


@pytest.fixture(scope="function")
def client_factory(db: Session):
    """Create a client for an organization: client_factory(org, email=None)."""

    def factory(org: Organization, **kwargs) -> Client:
        return make_client(db, org, **kwargs)

    return factory


@pytest.fixture(scope="function")
def other_org_auth(db: Session) -> TestAuth:
    """A second, unrelated tenant with its own admin."""
    org = make_org(db, name="Other Cleaners")
    user = make_user(db, org)
    return TestAuth(user=user, org=org, token=mint_token(user, org))


@pytest.fixture(scope="function")
def team_member_auth(db: Session, test_org: Organization) -> TestAuth:
    """Non-admin member of test_org."""
    user = make_user(db, test_org, role=Role.TEAM_MEMBER)
    return TestAuth(user=user, org=test_org, token=mint_token(user, test_org, Role.TEAM_MEMBER))


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient with JWT cookie and CSRF header.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c

    app.dependency_overrides.clear()
