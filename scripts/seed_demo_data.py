"""
Seed demo data for local testing of the commission engine.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_data.py

This script creates:
- A demo organization with an admin and an advisor
- A pipeline with a won stage
- Two products with commission rate tables
- A few prospects
and prints access tokens to call the API with.
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from commission_engine.auth.jwt import create_access_token
from commission_engine.config import settings
from commission_engine.db import build_engine, build_sessionmaker, get_db_context
from commission_engine.models import (
    Organization,
    PipelineStage,
    Product,
    Prospect,
    User,
    UserRole,
)


DEMO_ORGANIZATION = "Cabinet Demo"

DEMO_STAGES = [
    {"slug": "nouveau", "name": "Nouveau", "position": 0},
    {"slug": "rdv", "name": "Rendez-vous", "position": 1},
    {"slug": "proposition", "name": "Proposition", "position": 2},
    {"slug": "gagne", "name": "Gagné", "position": 3, "is_won": True},
    {"slug": "perdu", "name": "Perdu", "position": 4, "is_lost": True},
]

DEMO_PRODUCTS = [
    {
        "name": "PER Horizon",
        "default_fee_rate": Decimal("0.02"),
        "commission_organization_initial": Decimal("0.03"),
        "commission_organization_monthly": Decimal("0.01"),
        "commission_advisor_initial": Decimal("0.02"),
        "commission_advisor_monthly": Decimal("0.005"),
    },
    {
        "name": "Assurance Vie Patrimoine",
        "default_fee_rate": Decimal("0.03"),
        "commission_organization_initial": Decimal("0.025"),
        "commission_organization_monthly": Decimal("0.0125"),
        "commission_advisor_initial": Decimal("0.015"),
        "commission_advisor_monthly": Decimal("0.0075"),
    },
]

DEMO_PROSPECTS = [
    ("Claire", "Martin"),
    ("Denis", "Moreau"),
    ("Sophie", "Bernard"),
]


async def get_or_create_organization(db) -> Organization:
    organization = await db.scalar(
        select(Organization).where(Organization.name == DEMO_ORGANIZATION)
    )
    if organization:
        print(f"Organization already exists (id={organization.id})")
        return organization

    organization = Organization(name=DEMO_ORGANIZATION, currency=settings.currency)
    db.add(organization)
    await db.flush()

    for stage in DEMO_STAGES:
        db.add(PipelineStage(organization_id=organization.id, **stage))
    for product in DEMO_PRODUCTS:
        db.add(Product(organization_id=organization.id, **product))
    for first_name, last_name in DEMO_PROSPECTS:
        db.add(Prospect(organization_id=organization.id, first_name=first_name, last_name=last_name))

    print(f"Created organization #{organization.id} with {len(DEMO_PRODUCTS)} products")
    return organization


async def get_or_create_user(db, organization: Organization, email: str, name: str, role: UserRole) -> User:
    user = await db.scalar(select(User).where(User.email == email))
    if user:
        return user

    user = User(organization_id=organization.id, email=email, full_name=name, role=role)
    db.add(user)
    await db.flush()
    print(f"Created {role.value}: {email}")
    return user


async def seed_all():
    """Seed all demo data."""
    print(f"\nConnecting to database...")
    print(f"URL: {settings.database_url[:50]}...")

    engine = build_engine(settings)
    session_factory = build_sessionmaker(engine)

    async with get_db_context(session_factory) as db:
        organization = await get_or_create_organization(db)
        admin = await get_or_create_user(db, organization, "admin@demo.test", "Alice Admin", UserRole.ADMIN)
        advisor = await get_or_create_user(db, organization, "advisor@demo.test", "Bruno Conseil", UserRole.ADVISOR)

        admin_token = create_access_token(admin.id, organization.id, admin.role)
        advisor_token = create_access_token(advisor.id, organization.id, advisor.role)

    print("\n" + "=" * 50)
    print("DEMO DATA CREATED SUCCESSFULLY!")
    print("=" * 50)
    print(f"""
Access tokens (Authorization: Bearer ...):
  - Admin:   {admin_token}
  - Advisor: {advisor_token}
    """)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_all())
