"""
Allow-lists of fields each kind of mutation may touch.

Financial fields of a sale (amounts, fee, product, advisor) are never
part of any list: a wrong sale is corrected by deleting its commission
records and recording it again.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping

from commission_engine.errors import ValidationError


class MutationType(str, Enum):
    """Kinds of in-place updates the engine performs."""
    SALE_CORRECTION = "sale_correction"
    PROSPECT_STAGE_ADVANCE = "prospect_stage_advance"


ALLOWED_FIELDS: Dict[MutationType, FrozenSet[str]] = {
    MutationType.SALE_CORRECTION: frozenset({"sold_at", "notes"}),
    MutationType.PROSPECT_STAGE_ADVANCE: frozenset({"stage_slug"}),
}


def check_mutation(mutation: MutationType, changes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate ``changes`` against the allow-list of ``mutation``.

    Returns:
        A plain dict copy of ``changes``

    Raises:
        ValidationError: empty change set or a field outside the allow-list
    """
    if not changes:
        raise ValidationError("No fields to update")

    allowed = ALLOWED_FIELDS[mutation]
    rejected = sorted(set(changes) - allowed)
    if rejected:
        raise ValidationError(
            f"Fields not updatable for {mutation.value}: {', '.join(rejected)}"
        )
    return dict(changes)


def apply_mutation(target: Any, mutation: MutationType, changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Check ``changes`` then set them on ``target``. Returns the applied changes."""
    checked = check_mutation(mutation, changes)
    for field, value in checked.items():
        setattr(target, field, value)
    return checked
