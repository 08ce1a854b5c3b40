"""
Commission calculation for a sale.

Rules:
- Fee rate: the sale's own rate, else the product default
- Fees are deducted per stream, only on the streams selected by the fee basis
- Monthly stream base: monthly contribution x counted months (first year by default)
- Role commission: sum over streams of net base x rate(role, stream)
- Rounded once per role, after summation, half-to-even to the cent
"""

from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Decimal
from typing import Dict, FrozenSet, Optional

from commission_engine.errors import ValidationError
from commission_engine.models import BeneficiaryRole, ContributionStream, FeeBasis
from commission_engine.schemas.sale import (
    CommissionBreakdown,
    RoleCommission,
    SaleData,
    StreamCommission,
)
from commission_engine.services.rates import RateConfiguration

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")

# Monthly contributions count for the first year
DEFAULT_MONTHLY_CONTRIBUTION_MONTHS = 12

FEE_STREAMS: Dict[Optional[FeeBasis], FrozenSet[ContributionStream]] = {
    None: frozenset(),
    FeeBasis.INITIAL: frozenset({ContributionStream.INITIAL}),
    FeeBasis.MONTHLY: frozenset({ContributionStream.MONTHLY}),
    FeeBasis.BOTH: frozenset({ContributionStream.INITIAL, ContributionStream.MONTHLY}),
}


def round_money(amount: Decimal) -> Decimal:
    """Round to the cent, half-to-even."""
    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


def validate_sale_data(sale_data: SaleData) -> None:
    """Raise ValidationError for out-of-range sale parameters."""
    if sale_data.initial_contribution < 0 or sale_data.monthly_contribution < 0:
        raise ValidationError("Contribution amounts must be positive")
    if sale_data.fee_rate is not None and not (ZERO <= sale_data.fee_rate <= ONE):
        raise ValidationError("Fee rate must be between 0 and 1 (0% to 100%)")


def effective_fee_rate(sale_data: SaleData, rates: RateConfiguration) -> Decimal:
    if sale_data.fee_rate is not None:
        return sale_data.fee_rate
    return rates.default_fee_rate


def calculate(
    sale_data: SaleData,
    rates: RateConfiguration,
    monthly_contribution_months: int = DEFAULT_MONTHLY_CONTRIBUTION_MONTHS,
) -> CommissionBreakdown:
    """Compute the organization and advisor commissions of a sale.

    Pure: no I/O, identical inputs give an identical breakdown.

    Args:
        sale_data: The sale parameters
        rates: Rate configuration resolved for ``sale_data.product_id``
        monthly_contribution_months: Months of monthly contribution in the base

    Returns:
        The per-role breakdown with rounded amounts and audit figures

    Raises:
        ValidationError: negative amounts, fee rate outside [0, 1], or
            rates resolved for another product
    """
    validate_sale_data(sale_data)
    if rates.product_id != sale_data.product_id:
        raise ValidationError("Rate configuration does not match the sold product")
    if monthly_contribution_months < 1:
        raise ValidationError("Monthly contribution months must be at least 1")

    fee_rate = effective_fee_rate(sale_data, rates)
    charged = FEE_STREAMS[sale_data.fee_basis]

    gross = {
        ContributionStream.INITIAL: sale_data.initial_contribution,
        ContributionStream.MONTHLY: sale_data.monthly_contribution * monthly_contribution_months,
    }
    fees = {
        stream: gross[stream] * fee_rate if stream in charged else ZERO
        for stream in ContributionStream
    }
    net = {stream: gross[stream] - fees[stream] for stream in ContributionStream}

    gross_total = sum(gross.values(), ZERO)
    fee_total = sum(fees.values(), ZERO)
    net_total = sum(net.values(), ZERO)

    lines: Dict[BeneficiaryRole, list] = {}
    unrounded: Dict[BeneficiaryRole, Decimal] = {}
    for role in BeneficiaryRole:
        lines[role] = [
            StreamCommission(
                stream=stream,
                gross_base=gross[stream],
                fee_amount=fees[stream],
                net_base=net[stream],
                rate=rates.rate_for(role, stream),
                commission=net[stream] * rates.rate_for(role, stream),
            )
            for stream in ContributionStream
        ]
        unrounded[role] = sum((line.commission for line in lines[role]), ZERO)

    advisor_amount = round_money(unrounded[BeneficiaryRole.ADVISOR])
    organization_amount = round_money(unrounded[BeneficiaryRole.ORGANIZATION])

    # Half-even rounding of both shares can overshoot a sub-cent net base
    cap = net_total.quantize(CENT, rounding=ROUND_DOWN)
    if advisor_amount > cap:
        advisor_amount = cap
    if advisor_amount + organization_amount > cap:
        organization_amount = max(cap - advisor_amount, ZERO)

    amounts = {
        BeneficiaryRole.ORGANIZATION: organization_amount,
        BeneficiaryRole.ADVISOR: advisor_amount,
    }
    roles = {
        role: RoleCommission(
            role=role,
            amount=amounts[role],
            unrounded_amount=unrounded[role],
            gross_base=gross_total,
            fee_amount=fee_total,
            net_base=net_total,
            streams=lines[role],
        )
        for role in BeneficiaryRole
    }

    return CommissionBreakdown(
        product_id=sale_data.product_id,
        currency=rates.currency,
        fee_rate=fee_rate,
        fee_basis=sale_data.fee_basis,
        organization=roles[BeneficiaryRole.ORGANIZATION],
        advisor=roles[BeneficiaryRole.ADVISOR],
        total_commission=organization_amount + advisor_amount,
        total_fees=round_money(fee_total),
    )
