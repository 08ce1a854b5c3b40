"""
Sale recording service.

A sale and its commission records are written in one transaction.
The prospect's pipeline stage is advanced afterwards, in its own
transaction: if that step fails the financial records stay and the
failure is reported in the result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from commission_engine.config import Settings, settings as default_settings
from commission_engine.errors import ForbiddenError, NotFoundError, ValidationError
from commission_engine.models import (
    AdvisorCommission,
    AuditAction,
    BeneficiaryRole,
    ContributionStream,
    PipelineStage,
    Prospect,
    Sale,
    UserRole,
)
from commission_engine.schemas.sale import (
    AdvisorCommissionResponse,
    CommissionBreakdown,
    ProspectSummary,
    SaleCorrection,
    SaleData,
    SaleResponse,
)
from commission_engine.services.commission import calculate, round_money
from commission_engine.services.mutation_policy import (
    MutationType,
    apply_mutation,
    check_mutation,
)
from commission_engine.services.rates import RateCache, RateResolver
from commission_engine.utils.audit import log_action

logger = logging.getLogger(__name__)


@dataclass
class SaleRecordResult:
    """What ``SaleRecorder.record_sale`` produced."""

    sale: SaleResponse
    prospect: ProspectSummary
    commissions: List[AdvisorCommissionResponse] = field(default_factory=list)
    calculation: Optional[CommissionBreakdown] = None
    replayed: bool = False
    stage_advanced: bool = False
    stage_error: Optional[str] = None


def _prospect_summary(prospect: Prospect, stage_slug: Optional[str] = None) -> ProspectSummary:
    return ProspectSummary(
        id=prospect.id,
        name=prospect.display_name,
        stage_slug=stage_slug or prospect.stage_slug,
    )


async def get_won_stage_slug(
    db: AsyncSession,
    organization_id: int,
    fallback: str,
) -> str:
    """Slug of the organization's won stage, or ``fallback`` if none is flagged."""
    slug = await db.scalar(
        select(PipelineStage.slug)
        .where(
            PipelineStage.organization_id == organization_id,
            PipelineStage.is_won.is_(True),
        )
        .order_by(PipelineStage.position)
        .limit(1)
    )
    return slug or fallback


class SaleRecorder:
    """Records sales for one organization on behalf of one advisor."""

    def __init__(
        self,
        db: AsyncSession,
        organization_id: int,
        advisor_id: int,
        rate_cache: Optional[RateCache] = None,
        settings: Optional[Settings] = None,
        ip_address: Optional[str] = None,
    ):
        self.db = db
        self.organization_id = organization_id
        self.advisor_id = advisor_id
        self.rate_cache = rate_cache
        self.settings = settings or default_settings
        self.ip_address = ip_address

    async def record_sale(
        self,
        prospect_id: int,
        sale_data: SaleData,
        idempotency_key: Optional[str] = None,
    ) -> SaleRecordResult:
        """
        Record a sale with its commissions and move the prospect to the won stage.

        Args:
            prospect_id: Prospect the sale was made to
            sale_data: Sale parameters
            idempotency_key: Client token; a retry with the same token
                returns the first result instead of recording again

        Raises:
            NotFoundError: prospect or product outside the organization
            ValidationError: invalid sale parameters (nothing is written)
        """
        idempotency_key = (idempotency_key or "").strip() or None

        prospect = await self._get_prospect(prospect_id)
        before = _prospect_summary(prospect)

        if idempotency_key:
            existing = await self._find_by_idempotency_key(prospect_id, idempotency_key)
            if existing is not None:
                return await self._replay(existing, before)

        resolver = RateResolver(
            self.db,
            self.organization_id,
            cache=self.rate_cache,
            default_currency=self.settings.currency,
        )
        rates = await resolver.resolve(sale_data.product_id)
        breakdown = calculate(
            sale_data,
            rates,
            monthly_contribution_months=self.settings.monthly_contribution_months,
        )

        now = datetime.now(timezone.utc)
        try:
            sale = await self._insert_sale(prospect_id, sale_data, breakdown, idempotency_key, now)
            commissions = await self._insert_commissions(sale, breakdown, now)
            await log_action(
                db=self.db,
                organization_id=self.organization_id,
                user_id=self.advisor_id,
                action=AuditAction.RECORD_SALE,
                target_type="sale",
                target_id=sale.id,
                action_metadata={
                    "prospect_id": prospect_id,
                    "product_id": sale_data.product_id,
                    "total_commission": str(breakdown.total_commission),
                },
                ip_address=self.ip_address,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if idempotency_key:
                # Lost a race against a retry carrying the same key
                existing = await self._find_by_idempotency_key(prospect_id, idempotency_key)
                if existing is not None:
                    return await self._replay(existing, before)
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Sale {sale.id} recorded for prospect {prospect_id} "
            f"(organization {self.organization_id}): "
            f"organization={breakdown.organization.amount} advisor={breakdown.advisor.amount}"
        )

        await self.db.refresh(sale)
        result = SaleRecordResult(
            sale=SaleResponse.model_validate(sale),
            prospect=before,
            commissions=[AdvisorCommissionResponse.model_validate(c) for c in commissions],
            calculation=breakdown,
        )

        try:
            won_slug = await self._advance_stage(prospect)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Sale {result.sale.id} kept but prospect {prospect_id} stage update failed: {e}"
            )
            result.stage_error = "Prospect stage could not be updated"
            return result

        result.prospect = before.model_copy(update={"stage_slug": won_slug})
        result.stage_advanced = True
        return result

    async def _get_prospect(self, prospect_id: int) -> Prospect:
        prospect = await self.db.scalar(
            select(Prospect).where(
                Prospect.id == prospect_id,
                Prospect.organization_id == self.organization_id,
            )
        )
        if prospect is None:
            raise NotFoundError(f"Prospect {prospect_id} not found")
        return prospect

    async def _find_by_idempotency_key(self, prospect_id: int, key: str) -> Optional[Sale]:
        return await self.db.scalar(
            select(Sale)
            .options(selectinload(Sale.commissions))
            .where(
                Sale.organization_id == self.organization_id,
                Sale.prospect_id == prospect_id,
                Sale.idempotency_key == key,
            )
            .execution_options(populate_existing=True)
        )

    async def _replay(self, sale: Sale, prospect: ProspectSummary) -> SaleRecordResult:
        logger.info(f"Sale {sale.id} already recorded with key '{sale.idempotency_key}', replaying")
        won_slug = await get_won_stage_slug(
            self.db, self.organization_id, self.settings.default_won_stage_slug
        )
        commissions = sorted(sale.commissions, key=lambda c: c.id)
        return SaleRecordResult(
            sale=SaleResponse.model_validate(sale),
            prospect=prospect,
            commissions=[AdvisorCommissionResponse.model_validate(c) for c in commissions],
            replayed=True,
            stage_advanced=prospect.stage_slug == won_slug,
        )

    async def _insert_sale(
        self,
        prospect_id: int,
        sale_data: SaleData,
        breakdown: CommissionBreakdown,
        idempotency_key: Optional[str],
        now: datetime,
    ) -> Sale:
        sale = Sale(
            organization_id=self.organization_id,
            prospect_id=prospect_id,
            product_id=sale_data.product_id,
            advisor_id=self.advisor_id,
            initial_contribution=sale_data.initial_contribution,
            monthly_contribution=sale_data.monthly_contribution,
            fee_rate=breakdown.fee_rate,
            fee_basis=sale_data.fee_basis,
            sold_at=now,
            idempotency_key=idempotency_key,
            created_at=now,
        )
        self.db.add(sale)
        await self.db.flush()
        return sale

    async def _insert_commissions(
        self,
        sale: Sale,
        breakdown: CommissionBreakdown,
        now: datetime,
    ) -> List[AdvisorCommission]:
        rows = []
        for line in breakdown.roles:
            if line.amount == 0 and not self.settings.record_zero_commissions:
                logger.debug(f"Skipping zero {line.role.value} commission on sale {sale.id}")
                continue
            rows.append(
                AdvisorCommission(
                    organization_id=self.organization_id,
                    advisor_id=self.advisor_id if line.role == BeneficiaryRole.ADVISOR else None,
                    sale_id=sale.id,
                    product_id=sale.product_id,
                    role=line.role,
                    amount=line.amount,
                    currency=breakdown.currency,
                    rate_initial=line.rate_for(ContributionStream.INITIAL),
                    rate_monthly=line.rate_for(ContributionStream.MONTHLY),
                    gross_base=round_money(line.gross_base),
                    fee_amount=round_money(line.fee_amount),
                    created_at=now,
                )
            )
        self.db.add_all(rows)
        await self.db.flush()
        return rows

    async def _advance_stage(self, prospect: Prospect) -> str:
        won_slug = await get_won_stage_slug(
            self.db, self.organization_id, self.settings.default_won_stage_slug
        )
        apply_mutation(prospect, MutationType.PROSPECT_STAGE_ADVANCE, {"stage_slug": won_slug})
        await self.db.commit()
        return won_slug


async def correct_sale(
    db: AsyncSession,
    organization_id: int,
    sale_id: int,
    changes: Mapping[str, Any],
    requesting_role: str,
    user_id: int,
    ip_address: Optional[str] = None,
) -> SaleResponse:
    """
    Apply an administrative correction to a sale.

    Only the fields allowed for a sale correction can change; amounts,
    fees and commissions never do.

    Raises:
        ForbiddenError: caller is not an organization admin
        ValidationError: a field outside the allow-list, or a bad value
        NotFoundError: no such sale in the organization
    """
    if requesting_role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")

    checked = check_mutation(MutationType.SALE_CORRECTION, changes)
    try:
        values = SaleCorrection.model_validate(checked).model_dump(include=set(checked))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid sale correction: {e.error_count()} invalid field(s)") from e

    sale = await db.scalar(
        select(Sale).where(
            Sale.id == sale_id,
            Sale.organization_id == organization_id,
        )
    )
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")

    apply_mutation(sale, MutationType.SALE_CORRECTION, values)
    sale.updated_at = datetime.now(timezone.utc)

    await log_action(
        db=db,
        organization_id=organization_id,
        user_id=user_id,
        action=AuditAction.CORRECT_SALE,
        target_type="sale",
        target_id=sale_id,
        action_metadata={k: str(v) if v is not None else None for k, v in values.items()},
        ip_address=ip_address,
    )
    await db.commit()

    logger.info(f"Sale {sale_id} corrected by user {user_id}: {sorted(values)}")
    return SaleResponse.model_validate(sale)
