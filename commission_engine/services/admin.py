"""
Administrative operations on commission records.

Only organization admins may list or delete commission records. The
role is checked before any lookup so that a non-admin cannot learn
whether a record exists.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.errors import ForbiddenError, NotFoundError
from commission_engine.models import AdvisorCommission, AuditAction, UserRole
from commission_engine.utils.audit import log_action

logger = logging.getLogger(__name__)


def require_admin_role(requesting_role: str) -> None:
    if requesting_role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")


class AdvisorCommissionAdmin:
    """Admin-only listing and deletion of commission records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_commissions(
        self,
        organization_id: int,
        requesting_role: str,
        advisor_id: Optional[int] = None,
    ) -> List[AdvisorCommission]:
        """Commission records of the organization, newest first."""
        require_admin_role(requesting_role)

        query = select(AdvisorCommission).where(
            AdvisorCommission.organization_id == organization_id
        )
        if advisor_id is not None:
            query = query.where(AdvisorCommission.advisor_id == advisor_id)

        result = await self.db.execute(
            query.order_by(AdvisorCommission.created_at.desc(), AdvisorCommission.id.desc())
        )
        return list(result.scalars().all())

    async def delete_commission(
        self,
        organization_id: int,
        commission_id: int,
        requesting_role: str,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        """
        Hard-delete one commission record. The sale is left untouched.

        Raises:
            ForbiddenError: caller is not an admin, whether or not the record exists
            NotFoundError: no record with this id in this organization
        """
        require_admin_role(requesting_role)

        # id and organization in the same lookup: other tenants' ids look absent
        commission = await self.db.scalar(
            select(AdvisorCommission).where(
                AdvisorCommission.id == commission_id,
                AdvisorCommission.organization_id == organization_id,
            )
        )
        if commission is None:
            raise NotFoundError("Commission not found")

        metadata = {
            "sale_id": commission.sale_id,
            "role": commission.role.value,
            "advisor_id": commission.advisor_id,
            "amount": str(commission.amount),
            "currency": commission.currency,
        }
        await self.db.delete(commission)

        if user_id is not None:
            await log_action(
                db=self.db,
                organization_id=organization_id,
                user_id=user_id,
                action=AuditAction.DELETE_COMMISSION,
                target_type="commission",
                target_id=commission_id,
                action_metadata=metadata,
                ip_address=ip_address,
            )

        await self.db.commit()
        logger.info(
            f"Commission {commission_id} (sale {metadata['sale_id']}) deleted "
            f"from organization {organization_id} by user {user_id}"
        )
