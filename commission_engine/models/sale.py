"""
Sale model: one recorded sale of a product to a prospect.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import BaseModel

if TYPE_CHECKING:
    from commission_engine.models.commission import AdvisorCommission
    from commission_engine.models.organization import User
    from commission_engine.models.product import Product
    from commission_engine.models.prospect import Prospect


class FeeBasis(str, Enum):
    """Contribution stream(s) the fee is deducted from."""
    INITIAL = "initial"
    MONTHLY = "mensuel"
    BOTH = "both"

    @classmethod
    def _missing_(cls, value):
        # Values used by the legacy sale closure form
        aliases = {"periodique": cls.MONTHLY, "les_deux": cls.BOTH}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class Sale(BaseModel):
    """
    A recorded sale.

    Immutable once written: only ``sold_at`` and ``notes`` may be
    corrected by an organization admin.
    """

    __tablename__ = "sales"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "prospect_id",
            "idempotency_key",
            name="uq_sales_prospect_idempotency_key",
        ),
    )

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    prospect_id: Mapped[int] = mapped_column(
        ForeignKey("crm_prospects.id"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"),
        nullable=False,
    )
    advisor_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="User who recorded the sale",
    )
    initial_contribution: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    monthly_contribution: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    fee_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
    )
    fee_basis: Mapped[Optional[FeeBasis]] = mapped_column(
        SQLAlchemyEnum(
            FeeBasis,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    sold_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    idempotency_key: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Relationships
    prospect: Mapped["Prospect"] = relationship("Prospect")
    product: Mapped["Product"] = relationship("Product")
    advisor: Mapped["User"] = relationship("User")
    commissions: Mapped[List["AdvisorCommission"]] = relationship(
        "AdvisorCommission",
        back_populates="sale",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Sale(id={self.id}, prospect_id={self.prospect_id}, product_id={self.product_id})>"
