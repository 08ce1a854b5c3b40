"""Commission reporting schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class AdvisorCommissionTotal(BaseModel):
    """Advisor share earned over the window."""

    advisor_id: int
    advisor_name: str
    total_commission: Decimal
    sales_count: int


class RecentSale(BaseModel):
    """Latest sales in the window, newest first."""

    sale_id: int
    prospect_id: int
    prospect_name: str
    product_id: int
    product_name: str
    advisor_id: int
    sold_at: datetime
    total_commission: Decimal


class CommissionStats(BaseModel):
    """Commission summary for one organization."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    total_commission: Decimal = Decimal("0.00")
    total_organization: Decimal = Decimal("0.00")
    total_advisor: Decimal = Decimal("0.00")
    sales_count: int = 0
    average_commission_per_sale: Decimal = Decimal("0.00")

    by_role: Dict[str, Decimal] = {}
    by_advisor: Dict[int, Decimal] = {}

    advisors: List[AdvisorCommissionTotal] = []
    recent_sales: List[RecentSale] = []
