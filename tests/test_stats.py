"""
Tests for commission reporting.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from commission_engine.models import FeeBasis, UserRole
from commission_engine.schemas.sale import SaleData
from commission_engine.services.admin import AdvisorCommissionAdmin
from commission_engine.services.sales import SaleRecorder
from commission_engine.services.stats import CommissionStatsAggregator


def _sale_data(product_id: int) -> SaleData:
    return SaleData(
        product_id=product_id,
        initial_contribution=Decimal("10000"),
        monthly_contribution=Decimal("200"),
        fee_rate=Decimal("0.02"),
        fee_basis=FeeBasis.BOTH,
    )


async def _record_two_sales(db_session, seed):
    recorder = SaleRecorder(db_session, seed.org_id, seed.advisor_id)
    first = await recorder.record_sale(seed.prospect_id, _sale_data(seed.product_id))
    second = await recorder.record_sale(seed.second_prospect_id, _sale_data(seed.product_id))
    return first, second


# ── Empty ─────────────────────────────────────────────────


class TestEmptyStats:
    async def test_no_sales(self, db_session, seed):
        stats = await CommissionStatsAggregator(db_session).get_stats(seed.org_id)
        assert stats.total_commission == Decimal("0.00")
        assert stats.sales_count == 0
        assert stats.average_commission_per_sale == Decimal("0.00")
        assert stats.by_role == {"organization": Decimal("0.00"), "advisor": Decimal("0.00")}
        assert stats.by_advisor == {}
        assert stats.advisors == []
        assert stats.recent_sales == []

    async def test_window_before_any_sale(self, db_session, seed):
        await _record_two_sales(db_session, seed)
        end = datetime.now(timezone.utc) - timedelta(days=1)
        stats = await CommissionStatsAggregator(db_session).get_stats(
            seed.org_id, start_date=end - timedelta(days=30), end_date=end
        )
        assert stats.total_commission == Decimal("0.00")
        assert stats.sales_count == 0
        assert stats.recent_sales == []


# ── Totals ────────────────────────────────────────────────


class TestTotals:
    async def test_two_sales(self, db_session, seed):
        first, second = await _record_two_sales(db_session, seed)

        stats = await CommissionStatsAggregator(db_session).get_stats(seed.org_id)

        assert stats.total_organization == Decimal("635.04")
        assert stats.total_advisor == Decimal("415.52")
        assert stats.total_commission == Decimal("1050.56")
        assert stats.sales_count == 2
        assert stats.average_commission_per_sale == Decimal("525.28")
        assert stats.by_role["organization"] == Decimal("635.04")
        assert stats.by_advisor == {seed.advisor_id: Decimal("415.52")}

        [advisor] = stats.advisors
        assert advisor.advisor_id == seed.advisor_id
        assert advisor.advisor_name == "Bruno Lefevre"
        assert advisor.sales_count == 2

    async def test_recent_sales_newest_first(self, db_session, seed):
        first, second = await _record_two_sales(db_session, seed)

        stats = await CommissionStatsAggregator(db_session).get_stats(seed.org_id)

        assert [s.sale_id for s in stats.recent_sales] == [second.sale.id, first.sale.id]
        latest = stats.recent_sales[0]
        assert latest.prospect_name == "Denis Moreau"
        assert latest.product_name == "PER Horizon"
        assert latest.total_commission == Decimal("525.28")

    async def test_window_including_sales(self, db_session, seed):
        await _record_two_sales(db_session, seed)
        now = datetime.now(timezone.utc)
        stats = await CommissionStatsAggregator(db_session).get_stats(
            seed.org_id,
            start_date=now - timedelta(hours=1),
            end_date=now + timedelta(hours=1),
        )
        assert stats.sales_count == 2
        assert stats.total_commission == Decimal("1050.56")

    async def test_other_organization_sees_nothing(self, db_session, seed):
        await _record_two_sales(db_session, seed)
        stats = await CommissionStatsAggregator(db_session).get_stats(seed.other_org_id)
        assert stats.total_commission == Decimal("0.00")
        assert stats.sales_count == 0
        assert stats.recent_sales == []

    async def test_deleted_commission_leaves_totals(self, db_session, seed):
        first, _ = await _record_two_sales(db_session, seed)
        advisor_row = next(c for c in first.commissions if c.advisor_id is not None)

        await AdvisorCommissionAdmin(db_session).delete_commission(
            seed.org_id, advisor_row.id, UserRole.ADMIN, user_id=seed.admin_id
        )

        stats = await CommissionStatsAggregator(db_session).get_stats(seed.org_id)
        assert stats.total_advisor == Decimal("207.76")
        assert stats.total_commission == Decimal("842.80")
        # The sale itself is kept
        assert stats.sales_count == 2
        assert stats.advisors[0].sales_count == 1
