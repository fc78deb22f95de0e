"""
Engine settings schema.

Defines the human-authored configuration for the stock engine.  YAML
files under ``stock_config/sets`` are parsed into these types by the
loader; the engine only ever sees the frozen ``EngineSettings``.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass, field
from decimal import Decimal

from stock_kernel.domain.values import quantize, quantum

_ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_CEILING,
        decimal.ROUND_DOWN,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_UP,
        decimal.ROUND_05UP,
    }
)

_MAX_PLACES = 12


# ---------------------------------------------------------------------------
# Precision
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrecisionSettings:
    """
    Fixed decimal precision applied by the movement engine.

    Quantities are quantized on entry so that "insufficient stock" is an
    exact Decimal comparison; average cost and valuation are quantized
    after every update.
    """

    quantity_places: int = 4
    cost_places: int = 6
    valuation_places: int = 6
    rounding: str = decimal.ROUND_HALF_UP

    def __post_init__(self) -> None:
        for name in ("quantity_places", "cost_places", "valuation_places"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if not 0 <= value <= _MAX_PLACES:
                raise ValueError(
                    f"{name} must be between 0 and {_MAX_PLACES}, got {value}"
                )
        if self.rounding not in _ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode: {self.rounding!r}")

    def quantity(self, value: Decimal) -> Decimal:
        return quantize(value, self.quantity_places, self.rounding)

    def cost(self, value: Decimal) -> Decimal:
        return quantize(value, self.cost_places, self.rounding)

    def valuation(self, value: Decimal) -> Decimal:
        return quantize(value, self.valuation_places, self.rounding)

    def valuation_tolerance(self, quantity: Decimal) -> Decimal:
        """Allowed drift between valuation and quantity * average cost."""
        scale = max(Decimal(1), abs(quantity))
        return (quantum(self.valuation_places) + quantum(self.cost_places)) * scale


# ---------------------------------------------------------------------------
# Settings root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    """Root configuration artifact handed to the movement engine."""

    config_id: str = "default"
    version: int = 1
    precision: PrecisionSettings = field(default_factory=PrecisionSettings)
    checksum: str = ""

    @classmethod
    def default(cls) -> EngineSettings:
        """Built-in settings, no filesystem access."""
        return cls()
