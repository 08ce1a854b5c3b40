"""
Tests for the mutation allow-lists.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from commission_engine.errors import ValidationError
from commission_engine.services.mutation_policy import (
    ALLOWED_FIELDS,
    MutationType,
    apply_mutation,
    check_mutation,
)


class TestCheckMutation:
    def test_sale_correction_fields(self):
        changes = {"notes": "Signed at the office", "sold_at": datetime(2026, 3, 1, tzinfo=timezone.utc)}
        assert check_mutation(MutationType.SALE_CORRECTION, changes) == changes

    def test_financial_field_rejected(self):
        with pytest.raises(ValidationError, match="initial_contribution"):
            check_mutation(MutationType.SALE_CORRECTION, {"initial_contribution": "1"})

    def test_mixed_fields_rejected(self):
        with pytest.raises(ValidationError):
            check_mutation(MutationType.SALE_CORRECTION, {"notes": "ok", "advisor_id": 3})

    def test_empty_changes(self):
        with pytest.raises(ValidationError, match="No fields"):
            check_mutation(MutationType.SALE_CORRECTION, {})

    def test_stage_advance_only_touches_stage(self):
        with pytest.raises(ValidationError):
            check_mutation(MutationType.PROSPECT_STAGE_ADVANCE, {"assigned_to": 1})

    def test_no_list_contains_amounts(self):
        for fields in ALLOWED_FIELDS.values():
            assert not fields & {"initial_contribution", "monthly_contribution", "fee_rate", "amount"}


class TestApplyMutation:
    def test_sets_attributes(self):
        prospect = SimpleNamespace(stage_slug="rdv", first_name="Claire")
        applied = apply_mutation(prospect, MutationType.PROSPECT_STAGE_ADVANCE, {"stage_slug": "client"})
        assert applied == {"stage_slug": "client"}
        assert prospect.stage_slug == "client"
        assert prospect.first_name == "Claire"

    def test_rejected_changes_not_applied(self):
        sale = SimpleNamespace(notes=None, fee_rate="0.02")
        with pytest.raises(ValidationError):
            apply_mutation(sale, MutationType.SALE_CORRECTION, {"notes": "x", "fee_rate": "0"})
        assert sale.notes is None
        assert sale.fee_rate == "0.02"
