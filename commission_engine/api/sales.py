"""Sales API endpoints: commission simulation, sale recording, reporting."""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.dependencies import AuthContext, get_auth_context
from commission_engine.config import settings
from commission_engine.db import get_db
from commission_engine.errors import ValidationError
from commission_engine.schemas.sale import (
    RecordSaleRequest,
    RecordSaleResponse,
    SaleData,
    SaleResponse,
)
from commission_engine.schemas.stats import CommissionStats
from commission_engine.services.commission import calculate
from commission_engine.services.rates import RateCache, RateResolver
from commission_engine.services.sales import SaleRecorder, correct_sale
from commission_engine.services.stats import CommissionStatsAggregator
from commission_engine.utils.audit import get_client_ip

router = APIRouter(prefix="/sales", tags=["Sales"])


def get_rate_cache(request: Request) -> Optional[RateCache]:
    """Rate cache built by the application lifespan."""
    return getattr(request.app.state, "rate_cache", None)


@router.post("/calculate")
async def calculate_commissions(
    sale_data: SaleData,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    rate_cache: Optional[RateCache] = Depends(get_rate_cache),
):
    """Simulate the commissions of a sale without recording anything."""
    resolver = RateResolver(
        db,
        context.organization_id,
        cache=rate_cache,
        default_currency=settings.currency,
    )
    rates = await resolver.resolve(sale_data.product_id)
    breakdown = calculate(
        sale_data,
        rates,
        monthly_contribution_months=settings.monthly_contribution_months,
    )
    return {"calculation": breakdown}


@router.post("", response_model=RecordSaleResponse)
async def record_sale(
    request: Request,
    data: RecordSaleRequest,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    rate_cache: Optional[RateCache] = Depends(get_rate_cache),
    idempotency_key_header: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    """Record a sale, its commissions, and move the prospect to the won stage."""
    # Blank keys count as no key
    idempotency_key = (data.idempotency_key or idempotency_key_header or "").strip() or None
    if idempotency_key is not None and len(idempotency_key) > 100:
        raise ValidationError("Idempotency key must be at most 100 characters")

    recorder = SaleRecorder(
        db,
        organization_id=context.organization_id,
        advisor_id=context.user_id,
        rate_cache=rate_cache,
        ip_address=get_client_ip(request),
    )
    result = await recorder.record_sale(
        data.prospect_id,
        data.sale_data,
        idempotency_key=idempotency_key,
    )

    return RecordSaleResponse(
        message="Sale already recorded" if result.replayed else "Sale recorded",
        sale=result.sale,
        prospect=result.prospect,
        commissions=result.commissions,
        calculation=result.calculation,
        replayed=result.replayed,
        stage_advanced=result.stage_advanced,
        stage_error=result.stage_error,
    )


@router.get("/commissions", response_model=CommissionStats)
async def get_commission_stats(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """Commission totals of the caller's organization over a date range."""
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be before end_date")

    aggregator = CommissionStatsAggregator(db)
    return await aggregator.get_stats(context.organization_id, start_date, end_date)


@router.patch("/{sale_id}", response_model=SaleResponse)
async def correct_sale_record(
    request: Request,
    sale_id: int,
    changes: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    """Correct the date or notes of a sale (admin only)."""
    return await correct_sale(
        db,
        organization_id=context.organization_id,
        sale_id=sale_id,
        changes=changes,
        requesting_role=context.role,
        user_id=context.user_id,
        ip_address=get_client_ip(request),
    )
