"""
Tests for rate resolution and the rate cache.
"""

from decimal import Decimal

import pytest

from commission_engine.errors import NotFoundError, ValidationError
from commission_engine.models import BeneficiaryRole, ContributionStream
from commission_engine.services.rates import RateCache, RateConfiguration, RateResolver


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _config(**kwargs) -> RateConfiguration:
    defaults = {
        "product_id": 7,
        "organization_id": 1,
        "currency": "EUR",
        "default_fee_rate": Decimal("0.01"),
        "organization_initial": Decimal("0.03"),
        "organization_monthly": Decimal("0.01"),
        "advisor_initial": Decimal("0.02"),
        "advisor_monthly": Decimal("0.005"),
    }
    defaults.update(kwargs)
    return RateConfiguration(**defaults)


# ── RateConfiguration ─────────────────────────────────────


class TestRateConfiguration:
    def test_rate_lookup(self):
        config = _config()
        assert config.rate_for(BeneficiaryRole.ORGANIZATION, ContributionStream.INITIAL) == Decimal("0.03")
        assert config.rate_for(BeneficiaryRole.ORGANIZATION, ContributionStream.MONTHLY) == Decimal("0.01")
        assert config.rate_for(BeneficiaryRole.ADVISOR, ContributionStream.INITIAL) == Decimal("0.02")
        assert config.rate_for(BeneficiaryRole.ADVISOR, ContributionStream.MONTHLY) == Decimal("0.005")

    def test_valid_table(self):
        _config().validate()

    def test_rate_above_one(self):
        with pytest.raises(ValidationError):
            _config(advisor_initial=Decimal("1.2")).validate()

    def test_negative_rate(self):
        with pytest.raises(ValidationError):
            _config(default_fee_rate=Decimal("-0.01")).validate()

    def test_shares_above_hundred_percent(self):
        with pytest.raises(ValidationError, match="exceed 100%"):
            _config(
                organization_monthly=Decimal("0.6"),
                advisor_monthly=Decimal("0.5"),
            ).validate()

    def test_immutable(self):
        config = _config()
        with pytest.raises(AttributeError):
            config.advisor_initial = Decimal("0.5")


# ── RateCache ─────────────────────────────────────────────


class TestRateCache:
    def test_hit(self):
        cache = RateCache(ttl_seconds=60, clock=FakeClock())
        config = _config()
        cache.put(config)
        assert cache.get(1, 7) is config

    def test_miss_other_organization(self):
        cache = RateCache(ttl_seconds=60, clock=FakeClock())
        cache.put(_config())
        assert cache.get(2, 7) is None

    def test_expiry(self):
        clock = FakeClock()
        cache = RateCache(ttl_seconds=60, clock=clock)
        cache.put(_config())
        clock.now += 59
        assert cache.get(1, 7) is not None
        clock.now += 1
        assert cache.get(1, 7) is None
        assert len(cache) == 0

    def test_zero_ttl_disables(self):
        cache = RateCache(ttl_seconds=0, clock=FakeClock())
        cache.put(_config())
        assert cache.get(1, 7) is None
        assert len(cache) == 0

    def test_clear(self):
        cache = RateCache(ttl_seconds=60, clock=FakeClock())
        cache.put(_config())
        cache.clear()
        assert len(cache) == 0


# ── RateResolver ──────────────────────────────────────────


class TestRateResolver:
    async def test_resolves_product(self, db_session, seed):
        resolver = RateResolver(db_session, seed.org_id)
        config = await resolver.resolve(seed.product_id)
        assert config.product_id == seed.product_id
        assert config.organization_id == seed.org_id
        assert config.currency == "EUR"
        assert config.default_fee_rate == Decimal("0.02")
        assert config.advisor_monthly == Decimal("0.005")

    async def test_unknown_product(self, db_session, seed):
        resolver = RateResolver(db_session, seed.org_id)
        with pytest.raises(NotFoundError):
            await resolver.resolve(99999)

    async def test_product_of_other_organization(self, db_session, seed):
        resolver = RateResolver(db_session, seed.org_id)
        with pytest.raises(NotFoundError):
            await resolver.resolve(seed.other_product_id)

    async def test_inactive_product(self, db_session, seed):
        resolver = RateResolver(db_session, seed.org_id)
        with pytest.raises(NotFoundError):
            await resolver.resolve(seed.inactive_product_id)

    async def test_fills_cache(self, db_session, seed):
        cache = RateCache(ttl_seconds=60)
        resolver = RateResolver(db_session, seed.org_id, cache=cache)
        config = await resolver.resolve(seed.product_id)
        assert cache.get(seed.org_id, seed.product_id) == config

    async def test_cache_hit_skips_database(self):
        cache = RateCache(ttl_seconds=60)
        config = _config()
        cache.put(config)
        resolver = RateResolver(None, 1, cache=cache)
        assert await resolver.resolve(7) is config

    async def test_cache_is_per_organization(self, db_session, seed):
        cache = RateCache(ttl_seconds=60)
        cache.put(_config(product_id=seed.other_product_id, organization_id=seed.other_org_id))
        resolver = RateResolver(db_session, seed.org_id, cache=cache)
        with pytest.raises(NotFoundError):
            await resolver.resolve(seed.other_product_id)
