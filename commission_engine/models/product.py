"""
Product model: the minimal catalog fields the engine reads.
"""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import BaseModel


class Product(BaseModel):
    """
    Financial product sold by advisors.

    All rates are fractions (0.05 = 5%). The four commission rates form
    the rate table: beneficiary (organization, advisor) x contribution
    stream (initial, monthly).
    """

    __tablename__ = "products"

    organization_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    default_fee_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
        comment="Fee rate applied when a sale does not specify one",
    )
    commission_organization_initial: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )
    commission_organization_monthly: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )
    commission_advisor_initial: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )
    commission_advisor_monthly: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        nullable=False,
        default=Decimal("0"),
        server_default="0",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', active={self.is_active})>"
