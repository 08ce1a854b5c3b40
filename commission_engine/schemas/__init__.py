"""Pydantic schemas for request/response validation."""

from commission_engine.schemas.sale import (
    AdvisorCommissionResponse,
    CommissionBreakdown,
    ProspectSummary,
    RecordSaleRequest,
    RecordSaleResponse,
    RoleCommission,
    SaleCorrection,
    SaleData,
    SaleResponse,
    StreamCommission,
)
from commission_engine.schemas.stats import (
    AdvisorCommissionTotal,
    CommissionStats,
    RecentSale,
)

__all__ = [
    # Sale
    "SaleData",
    "RecordSaleRequest",
    "RecordSaleResponse",
    "SaleCorrection",
    "SaleResponse",
    "ProspectSummary",
    # Commission
    "AdvisorCommissionResponse",
    "CommissionBreakdown",
    "RoleCommission",
    "StreamCommission",
    # Stats
    "AdvisorCommissionTotal",
    "CommissionStats",
    "RecentSale",
]
