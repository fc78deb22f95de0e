"""
Tests for stock engine configuration loading.

Covers:
- Bundled default settings
- YAML parsing into frozen settings
- Precision validation
- Checksum determinism
- STOCK_CONFIG_TRACE emission
"""

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal

import pytest
import yaml

from stock_config import EngineSettings, PrecisionSettings, get_active_config
from stock_config.loader import compute_checksum, parse_precision, parse_settings
from stock_engines.movement import MovementProcessor
from stock_kernel.domain.movement import MovementKind, MovementLine


class TestDefaultSettings:
    """The bundled default configuration."""

    def test_bundled_default_matches_builtin_precision(self):
        settings = get_active_config()

        assert settings.config_id == "default"
        assert settings.precision == PrecisionSettings()
        assert settings.checksum

    def test_builtin_default(self):
        settings = EngineSettings.default()

        assert settings.precision.quantity_places == 4
        assert settings.precision.cost_places == 6
        assert settings.precision.valuation_places == 6
        assert settings.precision.rounding == ROUND_HALF_UP

    def test_missing_config_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("nope", config_dir=tmp_path)

    def test_config_trace_logged(self, captured_logs):
        get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "STOCK_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "default"
        assert traces[0]["quantity_places"] == 4


class TestCustomSettings:
    """Settings loaded from a caller-supplied directory."""

    def _write(self, directory, name, data):
        path = directory / f"{name}.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    def test_custom_precision(self, tmp_path):
        self._write(
            tmp_path,
            "coarse",
            {
                "config_id": "coarse",
                "version": 3,
                "precision": {
                    "quantity_places": 2,
                    "cost_places": 2,
                    "valuation_places": 2,
                    "rounding": "ROUND_HALF_EVEN",
                },
            },
        )

        settings = get_active_config("coarse", config_dir=tmp_path)

        assert settings.config_id == "coarse"
        assert settings.version == 3
        assert settings.precision.quantity_places == 2
        assert settings.precision.rounding == ROUND_HALF_EVEN

    def test_precision_drives_processor(self, tmp_path, make_movement, warehouses):
        self._write(
            tmp_path,
            "coarse",
            {"config_id": "coarse", "precision": {"cost_places": 2}},
        )
        processor = MovementProcessor(get_active_config("coarse", config_dir=tmp_path))
        movement = make_movement(
            MovementKind.RECEIPT,
            [
                MovementLine("SKU-1", "1", unit_cost="1.00"),
                MovementLine("SKU-1", "2", unit_cost="2.00"),
            ],
            destination="WH-CENTRAL",
        )

        result = processor.apply(movement, [], warehouses)

        assert result.kardex_lines[-1].resulting_average_cost == Decimal("1.67")
        assert result.entry_for("SKU-1", "WH-CENTRAL").total_valuation == Decimal("5.000000")

    def test_string_directory_accepted(self, tmp_path):
        self._write(tmp_path, "plain", {"config_id": "plain"})

        assert get_active_config("plain", config_dir=str(tmp_path)).config_id == "plain"

    def test_missing_config_id(self):
        with pytest.raises(KeyError):
            parse_settings({"version": 1})

    def test_unknown_precision_key(self):
        with pytest.raises(ValueError, match="Unknown precision keys"):
            parse_precision({"quantity_places": 2, "money_places": 2})


class TestPrecisionValidation:
    """PrecisionSettings.__post_init__"""

    @pytest.mark.parametrize("places", [-1, 13, True, 2.5, "4"])
    def test_invalid_places(self, places):
        with pytest.raises(ValueError):
            PrecisionSettings(quantity_places=places)

    def test_unknown_rounding(self):
        with pytest.raises(ValueError, match="rounding"):
            PrecisionSettings(rounding="ROUND_SIDEWAYS")

    def test_tolerance_scales_with_quantity(self):
        precision = PrecisionSettings()

        assert precision.valuation_tolerance(Decimal("0.5")) == Decimal("0.000002")
        assert precision.valuation_tolerance(Decimal("-10")) == Decimal("0.000020")


class TestChecksum:
    """compute_checksum"""

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_content_matters(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})
