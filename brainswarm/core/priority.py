"""
Brainswarm Backend — Priority Engine
=====================================

What:  Computes an entry's `final_prio` from its economic attributes.
How:   manual override + (time/100 + profit/1000) * effort factor, truncated.
Who:   EntryService on create, and on update when a priority field changes.

Formula:
    final_prio = int(manual_override + (time_saved / 100 + gross_profit / 1000) * factor)

    factor: low → 3, medium → 2, high → 1

    The computed term is only added when time saved, gross profit and effort
    are all truthy. A zero for time saved or profit therefore disables the
    term entirely; stored rankings depend on that, so it is kept as-is.

The engine never reads persisted state. For partial updates the caller builds
the merged record first (see merge_priority_fields).
"""

import enum
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Union

from brainswarm.exceptions import InvalidEffortError


class Effort(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


EFFORT_FACTORS = {
    Effort.LOW: 3,
    Effort.MEDIUM: 2,
    Effort.HIGH: 1,
}

TIME_DIVISOR = 100
PROFIT_DIVISOR = 1000

# Keys of an entry payload that feed the formula
PRIORITY_FIELDS = (
    "manual_override_prio",
    "time_saved_per_year",
    "gross_profit_per_year",
    "effort",
)

EffortLike = Union[Effort, str, None]


def effort_factor(effort: Union[Effort, str]) -> int:
    """Returns the multiplier for an effort level; raises InvalidEffortError otherwise."""
    try:
        return EFFORT_FACTORS[Effort(effort)]
    except ValueError:
        raise InvalidEffortError(effort)


def compute_priority(
    manual_override: Optional[int],
    time_saved_per_year: Optional[int],
    gross_profit_per_year: Optional[int],
    effort: EffortLike,
) -> int:
    """
    Compute the ranking integer for an entry.

    Args:
        manual_override: Additive bias; None counts as 0.
        time_saved_per_year: Hours saved per year, or None.
        gross_profit_per_year: Currency units per year, or None.
        effort: "low" | "medium" | "high" (or the Effort enum), or None.

    Returns:
        The accumulated priority truncated toward zero.

    Raises:
        InvalidEffortError: effort is set but not one of the three levels.

    Examples:
        >>> compute_priority(5, 500, 10000, "medium")
        35
        >>> compute_priority(0, 0, 5000, "low")
        0
    """
    accumulator: float = manual_override or 0

    # Validate even when the computed term ends up skipped
    factor = effort_factor(effort) if effort else None

    if time_saved_per_year and gross_profit_per_year and factor:
        time_factor = time_saved_per_year / TIME_DIVISOR
        profit_factor = gross_profit_per_year / PROFIT_DIVISOR
        accumulator += (time_factor + profit_factor) * factor

    return int(accumulator)


@dataclass(frozen=True)
class PriorityInputs:
    """The four attributes the formula reads, fully materialized."""

    manual_override_prio: Optional[int] = 0
    time_saved_per_year: Optional[int] = None
    gross_profit_per_year: Optional[int] = None
    effort: EffortLike = None

    @classmethod
    def from_record(cls, record: Any) -> "PriorityInputs":
        """Reads the fields off any object exposing them as attributes (ORM row, schema)."""
        return cls(
            manual_override_prio=getattr(record, "manual_override_prio", 0),
            time_saved_per_year=getattr(record, "time_saved_per_year", None),
            gross_profit_per_year=getattr(record, "gross_profit_per_year", None),
            effort=getattr(record, "effort", None),
        )

    def compute(self) -> int:
        return compute_priority(
            self.manual_override_prio,
            self.time_saved_per_year,
            self.gross_profit_per_year,
            self.effort,
        )


def touches_priority(incoming: Mapping[str, Any]) -> bool:
    """True when an update payload sets any field the formula depends on."""
    return any(field in incoming for field in PRIORITY_FIELDS)


def merge_priority_fields(
    existing: PriorityInputs, incoming: Mapping[str, Any]
) -> PriorityInputs:
    """
    Overlay the priority fields present in `incoming` onto `existing`.

    A key that is present wins even when its value is None, so clearing
    `time_saved_per_year` in an update really removes it from the formula.
    """
    changes = {field: incoming[field] for field in PRIORITY_FIELDS if field in incoming}
    return replace(existing, **changes)
