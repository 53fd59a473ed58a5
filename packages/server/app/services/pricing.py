"""
Pricing engine: derives a project's totals from its category and ledgers.

    fixed      total = fixed_amount
    hourly     total = hourly_rate * actual_hours
    milestone  total = sum(milestone.amount)

    actual_hours   = sum(time_entry.hours)   (every category)
    paid_amount    = sum(payment.amount)
    pending_amount = total_amount - paid_amount   (negative when overpaid)

Money is Decimal throughout and rounded half-up to cents, so repeated
recomputation never drifts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Iterable

from trackhub_shared.schemas.common import ProjectCategory

if TYPE_CHECKING:
    from app.services.projects import ProjectAggregate

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and Decimals to a cent-rounded Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def is_positive(value: Any) -> bool:
    """True when ``value`` is still above zero once rounded to cents."""
    return value is not None and to_decimal(value) > 0


@dataclass(frozen=True)
class Totals:
    actual_hours: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal


def compute_totals(
    category: str,
    fixed_amount: Any,
    hourly_rate: Any,
    milestones: Iterable[Any],
    time_entries: Iterable[Any],
    payments: Iterable[Any],
) -> Totals:
    """Pure computation of the derived fields. No I/O, never raises on valid input."""
    actual_hours = sum((to_decimal(e.hours) for e in time_entries), Decimal("0.00"))
    category = ProjectCategory(category)

    if category == ProjectCategory.FIXED:
        total = to_decimal(fixed_amount)
    elif category == ProjectCategory.HOURLY:
        total = to_decimal(to_decimal(hourly_rate) * actual_hours)
    else:
        total = sum((to_decimal(m.amount) for m in milestones), Decimal("0.00"))

    paid = sum((to_decimal(p.amount) for p in payments), Decimal("0.00"))
    return Totals(
        actual_hours=actual_hours,
        total_amount=total,
        paid_amount=paid,
        pending_amount=total - paid,
    )


def recompute(aggregate: "ProjectAggregate") -> "ProjectAggregate":
    """Restore the derived fields of ``aggregate.project`` from its ledgers.

    Idempotent: a second call without a ledger change writes identical values.
    """
    project = aggregate.project
    totals = compute_totals(
        project.category,
        project.fixed_amount,
        project.hourly_rate,
        aggregate.milestones,
        aggregate.time_entries,
        aggregate.payments,
    )
    project.actual_hours = totals.actual_hours
    project.total_amount = totals.total_amount
    project.paid_amount = totals.paid_amount
    project.pending_amount = totals.pending_amount
    return aggregate


def totals_of(aggregate: "ProjectAggregate") -> Totals:
    """The derived fields currently stored on the aggregate's project."""
    project = aggregate.project
    return Totals(
        actual_hours=to_decimal(project.actual_hours),
        total_amount=to_decimal(project.total_amount),
        paid_amount=to_decimal(project.paid_amount),
        pending_amount=to_decimal(project.pending_amount),
    )
