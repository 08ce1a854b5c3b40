"""
Sale and commission schemas.

Request bodies keep the field names of the sale closure form
(``versementInitial``, ``fraisSur``...) as aliases; responses use
snake_case.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commission_engine.models.commission import BeneficiaryRole, ContributionStream
from commission_engine.models.sale import FeeBasis


class SaleData(BaseModel):
    """
    Raw sale parameters.

    Ranges (non-negative amounts, fee rate in [0, 1]) are checked by the
    calculator so that direct callers get the same errors as the API.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: int = Field(..., alias="productId")
    initial_contribution: Decimal = Field(..., alias="versementInitial")
    monthly_contribution: Decimal = Field(..., alias="versementMensuel")
    fee_rate: Optional[Decimal] = Field(None, alias="fraisTaux")
    fee_basis: Optional[FeeBasis] = Field(None, alias="fraisSur")

    @field_validator("fee_basis", mode="before")
    @classmethod
    def normalize_fee_basis(cls, v):
        """Accept legacy basis names; empty means no fee deduction."""
        if v is None or v == "":
            return None
        return FeeBasis(v)


class RecordSaleRequest(BaseModel):
    """Body of POST /sales."""

    model_config = ConfigDict(populate_by_name=True)

    prospect_id: int = Field(..., alias="prospectId")
    sale_data: SaleData = Field(..., alias="saleData")
    idempotency_key: Optional[str] = Field(
        None,
        alias="idempotencyKey",
        min_length=1,
        max_length=100,
    )


class SaleCorrection(BaseModel):
    """Values accepted by an admin sale correction."""

    model_config = ConfigDict(extra="forbid")

    sold_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("sold_at", mode="before")
    @classmethod
    def sold_at_not_null(cls, v):
        """A sale always keeps a date; only an omitted field leaves it unchanged."""
        if v is None:
            raise ValueError("sold_at cannot be null")
        return v


class StreamCommission(BaseModel):
    """Commission owed to one role on one contribution stream, before rounding."""

    model_config = ConfigDict(frozen=True)

    stream: ContributionStream
    gross_base: Decimal
    fee_amount: Decimal
    net_base: Decimal
    rate: Decimal
    commission: Decimal


class RoleCommission(BaseModel):
    """Commission owed to one beneficiary role."""

    model_config = ConfigDict(frozen=True)

    role: BeneficiaryRole
    amount: Decimal
    unrounded_amount: Decimal
    gross_base: Decimal
    fee_amount: Decimal
    net_base: Decimal
    streams: List[StreamCommission]

    def rate_for(self, stream: ContributionStream) -> Decimal:
        for line in self.streams:
            if line.stream == stream:
                return line.rate
        return Decimal("0")


class CommissionBreakdown(BaseModel):
    """Result of a commission calculation. Not persisted as such."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    currency: str
    fee_rate: Decimal
    fee_basis: Optional[FeeBasis]
    organization: RoleCommission
    advisor: RoleCommission
    total_commission: Decimal
    total_fees: Decimal

    @property
    def roles(self) -> List[RoleCommission]:
        return [self.organization, self.advisor]


class SaleResponse(BaseModel):
    """Persisted sale."""

    id: int
    organization_id: int
    prospect_id: int
    product_id: int
    advisor_id: int
    initial_contribution: Decimal
    monthly_contribution: Decimal
    fee_rate: Decimal
    fee_basis: Optional[FeeBasis]
    sold_at: datetime
    idempotency_key: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AdvisorCommissionResponse(BaseModel):
    """Persisted commission record."""

    id: int
    organization_id: int
    advisor_id: Optional[int]
    sale_id: int
    product_id: int
    role: BeneficiaryRole
    amount: Decimal
    currency: str
    rate_initial: Decimal
    rate_monthly: Decimal
    gross_base: Decimal
    fee_amount: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class ProspectSummary(BaseModel):
    """The prospect a sale was recorded for."""

    id: int
    name: str
    stage_slug: str


class RecordSaleResponse(BaseModel):
    """Outcome of recording a sale."""

    message: str
    sale: SaleResponse
    prospect: ProspectSummary
    commissions: List[AdvisorCommissionResponse]
    calculation: Optional[CommissionBreakdown] = None
    replayed: bool = False
    stage_advanced: bool
    stage_error: Optional[str] = None
