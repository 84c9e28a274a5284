"""Filter engine for record sets.

Filters are evaluated one at a time and composed as an ordered fold: global
filters first, then the filters attached to a single dataset. Empty filters
(no field or no value) pass every record through unchanged.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence

from .coercion import is_missing, to_number, to_text
from .dto import Filter, Record, ValidationResult

FILTER_OPERATORS: tuple[str, ...] = (
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater_than",
    "less_than",
    "greater_equal",
    "less_equal",
    "starts_with",
    "ends_with",
)


def _text_predicate(check: Callable[[str, str], bool]) -> Callable[[object, object], bool]:
    """Wrap a case-insensitive string comparison."""

    def predicate(left: object, right: object) -> bool:
        return check(to_text(left).casefold(), to_text(right).casefold())

    return predicate


def _numeric_predicate(check: Callable[[float, float], bool]) -> Callable[[object, object], bool]:
    """Wrap a numeric comparison that is False whenever either side is NaN."""

    def predicate(left: object, right: object) -> bool:
        a = to_number(left)
        b = to_number(right)
        if math.isnan(a) or math.isnan(b):
            return False
        return check(a, b)

    return predicate


def _equals(left: object, right: object) -> bool:
    return to_text(left) == to_text(right)


_PREDICATES: dict[str, Callable[[object, object], bool]] = {
    "equals": _equals,
    "not_equals": lambda left, right: not _equals(left, right),
    "contains": _text_predicate(lambda a, b: b in a),
    "not_contains": _text_predicate(lambda a, b: b not in a),
    "starts_with": _text_predicate(lambda a, b: a.startswith(b)),
    "ends_with": _text_predicate(lambda a, b: a.endswith(b)),
    "greater_than": _numeric_predicate(lambda a, b: a > b),
    "less_than": _numeric_predicate(lambda a, b: a < b),
    "greater_equal": _numeric_predicate(lambda a, b: a >= b),
    "less_equal": _numeric_predicate(lambda a, b: a <= b),
}


def is_noop_filter(flt: Filter) -> bool:
    """Return True when a filter has no field or no value."""

    return not flt.field or flt.value is None or flt.value == ""


def apply_filter(records: Sequence[Record], flt: Filter) -> tuple[Record, ...]:
    """Apply a single filter to a record set.

    Args:
        records: Input records (never mutated).
        flt: Filter to evaluate.

    Returns:
        A tuple with the records that satisfy the predicate, in input order.
        Records missing the field never match. A no-op filter returns every
        record unchanged.
    """

    if is_noop_filter(flt):
        return tuple(records)

    predicate = _PREDICATES.get(flt.operator, _equals)
    return tuple(
        record
        for record in records
        if not is_missing(record, flt.field) and predicate(record.get(flt.field), flt.value)
    )


def apply_all_filters(
    records: Sequence[Record],
    global_filters: Iterable[Filter] | None = None,
    dataset_filters: Iterable[Filter] | None = None,
) -> tuple[Record, ...]:
    """Apply global filters, then dataset filters, as a sequential fold.

    Args:
        records: Input records.
        global_filters: Filters shared by every series, applied first.
        dataset_filters: Filters scoped to one series, applied second.

    Returns:
        Records surviving every filter, in input order.
    """

    result = tuple(records)
    for flt in (*(global_filters or ()), *(dataset_filters or ())):
        result = apply_filter(result, flt)
    return result


def validate_filter(flt: Filter) -> ValidationResult:
    """Validate a filter definition.

    Args:
        flt: Filter to validate.

    Returns:
        ValidationResult listing missing field/value and unknown operators.
    """

    errors: list[str] = []
    if not flt.field.strip():
        errors.append("Filter field must be specified")
    if flt.value is None or flt.value == "":
        errors.append("Filter value must be specified")
    if flt.operator and flt.operator not in FILTER_OPERATORS:
        errors.append(f"Unknown filter operator: {flt.operator!r}")
    return ValidationResult(is_valid=not errors, errors=tuple(errors))


def create_default_filter(field: str = "") -> Filter:
    """Return an empty equality filter for `field` (a no-op until a value is set)."""

    return Filter(field=field, operator="equals", value="")
