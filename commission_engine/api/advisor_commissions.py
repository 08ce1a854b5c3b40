"""Advisor commission administration endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.auth.dependencies import AuthContext, get_auth_context
from commission_engine.db import get_db
from commission_engine.schemas.sale import AdvisorCommissionResponse
from commission_engine.services.admin import AdvisorCommissionAdmin
from commission_engine.utils.audit import get_client_ip

router = APIRouter(prefix="/advisor-commissions", tags=["Advisor commissions"])


@router.get("")
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    advisor_id: Optional[int] = Query(None),
):
    """List the organization's commission records (admin only)."""
    admin = AdvisorCommissionAdmin(db)
    commissions = await admin.list_commissions(
        context.organization_id,
        context.role,
        advisor_id=advisor_id,
    )
    return {
        "commissions": [AdvisorCommissionResponse.model_validate(c) for c in commissions]
    }


@router.delete("/{commission_id}")
async def delete_commission(
    request: Request,
    commission_id: int,
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    """Delete one commission record (admin only). The sale is kept."""
    admin = AdvisorCommissionAdmin(db)
    await admin.delete_commission(
        context.organization_id,
        commission_id,
        context.role,
        user_id=context.user_id,
        ip_address=get_client_ip(request),
    )
    return {"message": "Commission deleted"}
