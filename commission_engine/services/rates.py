"""
Commission rate lookup.

A product's rate table changes rarely, so resolved configurations are
kept in a short-lived per (organization, product) cache. Cached entries
are immutable; they are never updated, only replaced once expired.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.errors import NotFoundError, ValidationError
from commission_engine.models import (
    BeneficiaryRole,
    ContributionStream,
    Organization,
    Product,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class RateConfiguration:
    """Fee default and commission rate table of one product."""

    product_id: int
    organization_id: int
    currency: str
    default_fee_rate: Decimal
    organization_initial: Decimal
    organization_monthly: Decimal
    advisor_initial: Decimal
    advisor_monthly: Decimal

    def rate_for(self, role: BeneficiaryRole, stream: ContributionStream) -> Decimal:
        """Commission rate owed to ``role`` on ``stream``."""
        if role == BeneficiaryRole.ORGANIZATION:
            if stream == ContributionStream.INITIAL:
                return self.organization_initial
            return self.organization_monthly
        if stream == ContributionStream.INITIAL:
            return self.advisor_initial
        return self.advisor_monthly

    def validate(self) -> None:
        """Reject tables that would pay out more than the net base."""
        rates = {
            "default_fee_rate": self.default_fee_rate,
            "organization_initial": self.organization_initial,
            "organization_monthly": self.organization_monthly,
            "advisor_initial": self.advisor_initial,
            "advisor_monthly": self.advisor_monthly,
        }
        for name, value in rates.items():
            if value < 0 or value > 1:
                raise ValidationError(
                    f"Product {self.product_id}: {name} must be between 0 and 1"
                )
        for stream in ContributionStream:
            total = (
                self.rate_for(BeneficiaryRole.ORGANIZATION, stream)
                + self.rate_for(BeneficiaryRole.ADVISOR, stream)
            )
            if total > 1:
                raise ValidationError(
                    f"Product {self.product_id}: {stream.value} commission rates exceed 100%"
                )

    @classmethod
    def from_product(cls, product: Product, currency: str) -> "RateConfiguration":
        return cls(
            product_id=product.id,
            organization_id=product.organization_id,
            currency=currency,
            default_fee_rate=Decimal(product.default_fee_rate),
            organization_initial=Decimal(product.commission_organization_initial),
            organization_monthly=Decimal(product.commission_organization_monthly),
            advisor_initial=Decimal(product.commission_advisor_initial),
            advisor_monthly=Decimal(product.commission_advisor_monthly),
        )


class RateCache:
    """
    In-process TTL cache of rate configurations.

    Owned by the application (built in the lifespan), shared by all
    requests. A TTL of 0 disables caching.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[int, int], Tuple[float, RateConfiguration]] = {}

    def get(self, organization_id: int, product_id: int) -> Optional[RateConfiguration]:
        key = (organization_id, product_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, config = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return config

    def put(self, config: RateConfiguration) -> None:
        if self._ttl <= 0:
            return
        key = (config.organization_id, config.product_id)
        self._entries[key] = (self._clock() + self._ttl, config)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RateResolver:
    """Resolves a product's rate configuration for one organization."""

    def __init__(
        self,
        db: AsyncSession,
        organization_id: int,
        cache: Optional[RateCache] = None,
        default_currency: str = "EUR",
    ):
        self.db = db
        self.organization_id = organization_id
        self.cache = cache
        self.default_currency = default_currency

    async def resolve(self, product_id: int) -> RateConfiguration:
        """
        Get the rate configuration of ``product_id``.

        Raises:
            NotFoundError: unknown product, inactive product, or a product
                of another organization
            ValidationError: the product's rate table is inconsistent
        """
        if self.cache is not None:
            cached = self.cache.get(self.organization_id, product_id)
            if cached is not None:
                return cached

        result = await self.db.execute(
            select(Product, Organization.currency)
            .join(Organization, Organization.id == Product.organization_id)
            .where(
                Product.id == product_id,
                Product.organization_id == self.organization_id,
                Product.is_active.is_(True),
            )
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")

        product, currency = row
        config = RateConfiguration.from_product(product, currency or self.default_currency)
        config.validate()

        logger.debug(
            f"Resolved rates for product {product_id} (organization {self.organization_id})"
        )
        if self.cache is not None:
            self.cache.put(config)
        return config
