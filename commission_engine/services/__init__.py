"""Business logic services."""

from commission_engine.services.admin import AdvisorCommissionAdmin
from commission_engine.services.commission import calculate, round_money
from commission_engine.services.rates import RateCache, RateConfiguration, RateResolver
from commission_engine.services.sales import SaleRecorder, SaleRecordResult, correct_sale
from commission_engine.services.stats import CommissionStatsAggregator

__all__ = [
    "AdvisorCommissionAdmin",
    "CommissionStatsAggregator",
    "RateCache",
    "RateConfiguration",
    "RateResolver",
    "SaleRecorder",
    "SaleRecordResult",
    "calculate",
    "correct_sale",
    "round_money",
]
