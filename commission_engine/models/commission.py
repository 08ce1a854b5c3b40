"""
Commission records derived from sales.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from commission_engine.models.organization import User
    from commission_engine.models.sale import Sale


class BeneficiaryRole(str, Enum):
    """Party entitled to a commission."""
    ORGANIZATION = "organization"
    ADVISOR = "advisor"


class ContributionStream(str, Enum):
    """Payment stream of a sale."""
    INITIAL = "initial"
    MONTHLY = "monthly"


class AdvisorCommission(Base, CreatedAtMixin):
    """
    One commission owed on a sale to one beneficiary.

    Rows are written together with their sale and never updated.
    Deleting one (admin correction) leaves the sale untouched.
    """

    __tablename__ = "advisor_commissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    advisor_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
        comment="NULL for the organization share",
    )
    sale_id: Mapped[int] = mapped_column(
        ForeignKey("sales.id"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"),
        nullable=False,
    )
    role: Mapped[BeneficiaryRole] = mapped_column(
        SQLAlchemyEnum(
            BeneficiaryRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )
    rate_initial: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
    )
    rate_monthly: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
    )
    gross_base: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    fee_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )

    # Relationships
    sale: Mapped["Sale"] = relationship("Sale", back_populates="commissions")
    advisor: Mapped[Optional["User"]] = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<AdvisorCommission(id={self.id}, sale_id={self.sale_id}, "
            f"role={self.role}, amount={self.amount})>"
        )
