"""
Values -- Decimal coercion and quantization helpers for stock arithmetic.

Responsibility:
    Provides the numeric primitives shared by every stock domain object:
    coercion of caller-supplied numbers into ``Decimal`` and quantization
    to a fixed number of fractional digits.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module and by the engines.

Invariants enforced:
    - Decimal-only arithmetic: quantities, costs and valuations are never
      floats.  Floats are converted through ``str`` so ``0.1`` becomes
      ``Decimal("0.1")``, not its binary expansion.
    - Fixed precision: comparisons in the engines happen on quantized
      values, so two implementations agree on "insufficient stock".

Failure modes:
    - ValueError from ``to_decimal`` when a value cannot be parsed.
    - decimal.InvalidOperation from ``quantize`` when the result needs more
      digits than the active context allows; the engines bound their
      inputs with ``within_magnitude`` first.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """
    Coerce ``value`` to Decimal.

    Preconditions:
        - value is a Decimal, int, float or numeric string.

    Postconditions:
        - Returns a Decimal; NaN and Infinity pass through unchanged so
          callers can reject them with a domain error.

    Raises:
        ValueError: if value is a bool or cannot be parsed.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid {name}: {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid {name}: {value!r}") from e


def to_optional_decimal(value: Any, name: str = "value") -> Decimal | None:
    """Like ``to_decimal`` but passes ``None`` through."""
    if value is None:
        return None
    return to_decimal(value, name)


def quantum(places: int) -> Decimal:
    """Return the Decimal quantum for ``places`` fractional digits."""
    return Decimal(1).scaleb(-places)


def quantize(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round ``value`` to ``places`` fractional digits."""
    return value.quantize(quantum(places), rounding=rounding)


def is_finite_non_negative(value: Decimal | None) -> bool:
    """True when value is present, finite and >= 0."""
    return value is not None and value.is_finite() and value >= ZERO


# Engine arithmetic runs in a decimal context of this many significant
# digits.  Inputs are bounded by MAX_MAGNITUDE so that every product of a
# quantity and a cost still quantizes exactly within it.
WORKING_PRECISION = 60
MAX_MAGNITUDE = Decimal("1E+15")


def within_magnitude(value: Decimal) -> bool:
    """True when value is finite and strictly below MAX_MAGNITUDE in size."""
    return value.is_finite() and abs(value) < MAX_MAGNITUDE
