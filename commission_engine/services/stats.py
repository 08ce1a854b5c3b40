"""
Commission reporting.

Totals are read from the persisted commission records, so deleting a
record (admin correction) is reflected immediately.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commission_engine.models import AdvisorCommission, BeneficiaryRole, Sale, User
from commission_engine.schemas.stats import AdvisorCommissionTotal, CommissionStats, RecentSale
from commission_engine.services.commission import round_money

logger = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 10
ZERO = Decimal("0")


def _money(value) -> Decimal:
    """Normalize a SUM() result (None, float on SQLite, Decimal) to cents."""
    if value is None:
        return round_money(ZERO)
    return round_money(Decimal(str(value)))


class CommissionStatsAggregator:
    """Read-only commission summaries, always scoped to one organization."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(
        self,
        organization_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> CommissionStats:
        """
        Summarize commissions created between ``start_date`` and ``end_date``.

        Both bounds are inclusive and optional. An empty window gives
        zeroed stats.
        """
        commission_filters = [AdvisorCommission.organization_id == organization_id]
        sale_filters = [Sale.organization_id == organization_id]
        if start_date:
            commission_filters.append(AdvisorCommission.created_at >= start_date)
            sale_filters.append(Sale.created_at >= start_date)
        if end_date:
            commission_filters.append(AdvisorCommission.created_at <= end_date)
            sale_filters.append(Sale.created_at <= end_date)

        # Totals per beneficiary role
        by_role = {role.value: round_money(ZERO) for role in BeneficiaryRole}
        role_rows = await self.db.execute(
            select(AdvisorCommission.role, func.sum(AdvisorCommission.amount))
            .where(*commission_filters)
            .group_by(AdvisorCommission.role)
        )
        for role, total in role_rows.all():
            by_role[BeneficiaryRole(role).value] = _money(total)

        # Advisor share per advisor
        advisor_rows = await self.db.execute(
            select(
                AdvisorCommission.advisor_id,
                User.full_name,
                func.sum(AdvisorCommission.amount),
                func.count(distinct(AdvisorCommission.sale_id)),
            )
            .outerjoin(User, User.id == AdvisorCommission.advisor_id)
            .where(
                *commission_filters,
                AdvisorCommission.role == BeneficiaryRole.ADVISOR,
                AdvisorCommission.advisor_id.is_not(None),
            )
            .group_by(AdvisorCommission.advisor_id, User.full_name)
        )
        advisors = [
            AdvisorCommissionTotal(
                advisor_id=advisor_id,
                advisor_name=full_name or "Unknown",
                total_commission=_money(total),
                sales_count=sales_count,
            )
            for advisor_id, full_name, total, sales_count in advisor_rows.all()
        ]
        advisors.sort(key=lambda a: (-a.total_commission, a.advisor_id))

        sales_count = await self.db.scalar(
            select(func.count(Sale.id)).where(*sale_filters)
        ) or 0

        total_organization = by_role[BeneficiaryRole.ORGANIZATION.value]
        total_advisor = by_role[BeneficiaryRole.ADVISOR.value]
        total = total_organization + total_advisor
        average = round_money(total / sales_count) if sales_count else round_money(ZERO)

        stats = CommissionStats(
            start_date=start_date,
            end_date=end_date,
            total_commission=round_money(total),
            total_organization=total_organization,
            total_advisor=total_advisor,
            sales_count=sales_count,
            average_commission_per_sale=average,
            by_role=by_role,
            by_advisor={a.advisor_id: a.total_commission for a in advisors},
            advisors=advisors,
            recent_sales=await self._recent_sales(organization_id, sale_filters),
        )
        logger.debug(
            f"Stats for organization {organization_id}: {sales_count} sales, total {stats.total_commission}"
        )
        return stats

    async def _recent_sales(self, organization_id: int, sale_filters: list) -> list[RecentSale]:
        commission_total = (
            select(func.coalesce(func.sum(AdvisorCommission.amount), ZERO))
            .where(
                AdvisorCommission.sale_id == Sale.id,
                AdvisorCommission.organization_id == organization_id,
            )
            .correlate(Sale)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Sale, commission_total)
            .options(selectinload(Sale.prospect), selectinload(Sale.product))
            .where(*sale_filters)
            .order_by(Sale.sold_at.desc(), Sale.id.desc())
            .limit(RECENT_SALES_LIMIT)
        )
        return [
            RecentSale(
                sale_id=sale.id,
                prospect_id=sale.prospect_id,
                prospect_name=sale.prospect.display_name if sale.prospect else "Unknown",
                product_id=sale.product_id,
                product_name=sale.product.name if sale.product else "Unknown",
                advisor_id=sale.advisor_id,
                sold_at=sale.sold_at,
                total_commission=_money(total),
            )
            for sale, total in result.all()
        ]
