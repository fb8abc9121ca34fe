"""Input variable classification and defensive snapshots.

Decision inputs arrive from a caller-owned, mutable environment whose value
types are only known at runtime. Before they are stored on an audit they are
reduced to a small portable set:

    None, bool, int, float, date / datetime, str

Anything outside that set is degraded to ``str(value)``. Decimals, fractions,
lists, dicts and domain objects therefore lose their precision or structure
and survive only as text. The audit accepts that loss in exchange for a
snapshot that later mutations cannot reach and that always serializes.
"""

import numbers
from datetime import date, datetime
from typing import Any, Mapping

STRING = "string"
DATE = "date"
NUMBER = "number"
BOOLEAN = "boolean"

VARIABLE_TYPES = frozenset({STRING, DATE, NUMBER, BOOLEAN})


def _as_instant(value: Any) -> date | None:
    """The stdlib date/datetime behind value, or None if it is not an instant.

    Library-native date-times (pandas Timestamp & co) expose to_pydatetime();
    collections do too (a DatetimeIndex returns an array), so only a scalar
    date or datetime result counts.
    """
    if isinstance(value, date):
        return value
    converter = getattr(value, "to_pydatetime", None)
    if not callable(converter):
        return None
    converted = converter()
    if isinstance(converted, date):
        return converted
    return None


def _as_truth_value(value: Any) -> bool | None:
    """bool, or a library-native boolean scalar (numpy bool_) unwrapped via item()."""
    if isinstance(value, bool):
        return value
    if getattr(value, "shape", None) != ():
        return None
    item = getattr(value, "item", None)
    if not callable(item):
        return None
    unwrapped = item()
    if isinstance(unwrapped, bool):
        return unwrapped
    return None


def is_temporal(value: Any) -> bool:
    """True for stdlib dates and library-native date-time scalars."""
    return _as_instant(value) is not None


def _copy_instant(value: date) -> date:
    if isinstance(value, datetime):
        return datetime(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            tzinfo=value.tzinfo,
            fold=value.fold,
        )
    return date(value.year, value.month, value.day)


def classify_value(value: Any) -> str | None:
    """
    Map a runtime value to its variable type tag.

    Checked in order: None, text, temporal, numeric, boolean. Temporal comes
    before numeric because some date-time types also behave as numbers.
    ``bool`` is an ``int`` subclass in Python, so it is excluded from the
    numeric check explicitly. Library-native scalars (pandas Timestamp, numpy
    bool_) count when they convert to a stdlib date or bool. Values that match
    nothing get None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return STRING
    if is_temporal(value):
        return DATE
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return NUMBER
    if _as_truth_value(value) is not None:
        return BOOLEAN
    return None


def snapshot_value(value: Any) -> Any:
    """Return an independent copy of value drawn from the portable type set."""
    if value is None:
        return None
    truth = _as_truth_value(value)
    if truth is not None:
        return truth
    instant = _as_instant(value)
    if instant is not None:
        return _copy_instant(instant)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
        return float(value)
    return str(value)


def classify_variables(variables: Mapping[str, Any] | None) -> dict[str, str | None]:
    """Type tag per variable name."""
    if not variables:
        return {}
    return {name: classify_value(value) for name, value in variables.items()}


def snapshot_variables(variables: Mapping[str, Any] | None) -> dict[str, Any]:
    """Defensive copy of the input mapping."""
    if not variables:
        return {}
    return {name: snapshot_value(value) for name, value in variables.items()}
