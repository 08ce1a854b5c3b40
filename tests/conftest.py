"""
Pytest configuration and fixtures.
"""

import os
from decimal import Decimal
from types import SimpleNamespace

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from commission_engine.db import build_sessionmaker
from commission_engine.main import create_app
from commission_engine.models import (
    Base,
    Organization,
    PipelineStage,
    Product,
    Prospect,
    User,
    UserRole,
)
from commission_engine.services.rates import RateCache


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session (same factory as the application)."""
    session_factory = build_sessionmaker(db_engine)

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db_session):
    """
    Two organizations with users, products and prospects.

    Returns plain ids: ORM instances expire on rollback and must not be
    touched afterwards in async code.
    """
    org = Organization(name="Cabinet Alpha", currency="EUR")
    other_org = Organization(name="Cabinet Beta", currency="EUR")
    db_session.add_all([org, other_org])
    await db_session.flush()

    admin = User(
        organization_id=org.id,
        email="alice@alpha.test",
        full_name="Alice Durand",
        role=UserRole.ADMIN,
    )
    advisor = User(
        organization_id=org.id,
        email="bruno@alpha.test",
        full_name="Bruno Lefevre",
        role=UserRole.ADVISOR,
    )
    inactive = User(
        organization_id=org.id,
        email="old@alpha.test",
        full_name="Former Advisor",
        role=UserRole.ADVISOR,
        is_active=False,
    )
    other_admin = User(
        organization_id=other_org.id,
        email="admin@beta.test",
        full_name="Bea Admin",
        role=UserRole.ADMIN,
    )
    db_session.add_all([admin, advisor, inactive, other_admin])

    product = Product(
        organization_id=org.id,
        name="PER Horizon",
        default_fee_rate=Decimal("0.02"),
        commission_organization_initial=Decimal("0.03"),
        commission_organization_monthly=Decimal("0.01"),
        commission_advisor_initial=Decimal("0.02"),
        commission_advisor_monthly=Decimal("0.005"),
    )
    inactive_product = Product(
        organization_id=org.id,
        name="Retired fund",
        is_active=False,
        commission_organization_initial=Decimal("0.03"),
    )
    other_product = Product(
        organization_id=other_org.id,
        name="Beta Vie",
        commission_organization_initial=Decimal("0.05"),
    )
    db_session.add_all([product, inactive_product, other_product])

    db_session.add_all([
        PipelineStage(organization_id=org.id, slug="nouveau", name="Nouveau", position=0),
        PipelineStage(organization_id=org.id, slug="rdv", name="Rendez-vous", position=1),
        PipelineStage(organization_id=org.id, slug="client", name="Client", position=4, is_won=True),
        PipelineStage(organization_id=org.id, slug="perdu", name="Perdu", position=5, is_lost=True),
    ])
    await db_session.flush()

    prospect = Prospect(
        organization_id=org.id,
        first_name="Claire",
        last_name="Martin",
        stage_slug="rdv",
        assigned_to=advisor.id,
    )
    second_prospect = Prospect(
        organization_id=org.id,
        first_name="Denis",
        last_name="Moreau",
        stage_slug="nouveau",
    )
    other_prospect = Prospect(
        organization_id=other_org.id,
        first_name="Eve",
        last_name="Petit",
        stage_slug="nouveau",
    )
    db_session.add_all([prospect, second_prospect, other_prospect])
    await db_session.flush()

    ids = SimpleNamespace(
        org_id=org.id,
        other_org_id=other_org.id,
        admin_id=admin.id,
        advisor_id=advisor.id,
        inactive_id=inactive.id,
        other_admin_id=other_admin.id,
        product_id=product.id,
        inactive_product_id=inactive_product.id,
        other_product_id=other_product.id,
        prospect_id=prospect.id,
        second_prospect_id=second_prospect.id,
        other_prospect_id=other_prospect.id,
    )
    await db_session.commit()
    return ids


@pytest_asyncio.fixture
async def client(db_engine, seed):
    """HTTP client over the ASGI app, sharing the test database."""
    app = create_app()
    # ASGITransport does not run the lifespan
    app.state.sessionmaker = build_sessionmaker(db_engine)
    app.state.rate_cache = RateCache(ttl_seconds=0)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
