"""
Tests for YAML configuration loading.

Covers:
- The packaged default configuration set
- ConfigurationError for every malformed input
- Deterministic checksums
- INVENTORY_CONFIG_TRACE emission
"""

from decimal import Decimal

import pytest
import yaml

from inventory_config import compute_checksum, get_active_config, parse_config
from inventory_config.loader import load_yaml_file
from inventory_kernel.exceptions import ConfigurationError

MINIMAL = {
    "config_id": "TEST",
    "items": [{"id": "ITM-001", "min_stock": 5}],
}


def _write(tmp_path, data, name="inventory.yaml"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else yaml.safe_dump(data))
    return path


class TestDefaultConfig:

    def test_loads(self):
        config = get_active_config()
        assert config.config_id == "DEFAULT-INVENTORY"
        assert config.default_unit == "pcs"
        assert config.reporting_period_days == 30
        assert config.database_url is None
        assert len(config.items) == 8

    def test_unit_cost_is_decimal(self):
        rod = get_active_config().item("ITM-003")
        assert rod.unit == "kg"
        assert rod.unit_cost == Decimal("22.5")

    def test_trace_logged(self, captured_logs):
        config = get_active_config()
        trace = next(r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE")
        assert trace["config_id"] == config.config_id
        assert trace["checksum"] == config.checksum
        assert trace["item_count"] == 8


class TestParseConfig:

    def test_defaults(self):
        config = parse_config(MINIMAL)
        assert config.version == 1
        assert config.log_level == "INFO"
        assert config.item("ITM-001").unit == "pcs"
        assert config.item("ITM-999") is None

    def test_sections(self):
        config = parse_config({
            **MINIMAL,
            "ledger": {"default_unit": "ea"},
            "reporting": {"period_days": 7},
            "database": {"url": "sqlite:///ledger.db"},
            "logging": {"level": "debug"},
        })
        assert config.default_unit == "ea"
        assert config.reporting_period_days == 7
        assert config.database_url == "sqlite:///ledger.db"
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("data,fragment", [
        ({"items": []}, "config_id"),
        ({**MINIMAL, "items": [{"min_stock": 1}]}, "'id'"),
        ({**MINIMAL, "items": [{"id": "A"}]}, "min_stock"),
        ({**MINIMAL, "items": [{"id": "A", "min_stock": "ten"}]}, "min_stock"),
        ({**MINIMAL, "items": [{"id": "A", "min_stock": -1}]}, "item A"),
        ({**MINIMAL, "items": [{"id": "A", "min_stock": 1, "unit_cost": "abc"}]}, "item A"),
        ({**MINIMAL, "items": [{"id": "A", "min_stock": 1}, {"id": "A", "min_stock": 2}]},
         "duplicate"),
        ({**MINIMAL, "items": {"id": "A"}}, "'items'"),
        ({**MINIMAL, "reporting": {"period_days": 0}}, "period_days"),
        ({**MINIMAL, "logging": {"level": "LOUD"}}, "logging.level"),
        ({**MINIMAL, "ledger": ["pcs"]}, "'ledger'"),
    ])
    def test_rejects(self, data, fragment):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(data, source="test.yaml")
        assert fragment in str(exc_info.value)
        assert exc_info.value.source == "test.yaml"


class TestLoadYaml:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="file not found"):
            get_active_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "config_id: [unterminated")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_yaml_file(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml_file(path)

    def test_empty_file_is_empty_mapping(self, tmp_path):
        assert load_yaml_file(_write(tmp_path, "")) == {}

    def test_round_trip_from_file(self, tmp_path):
        config = get_active_config(_write(tmp_path, MINIMAL))
        assert config.config_id == "TEST"
        assert config.item("ITM-001").min_stock == 5


class TestChecksum:

    def test_key_order_irrelevant(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_content_sensitive(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_same_file_same_checksum(self, tmp_path):
        path = _write(tmp_path, MINIMAL)
        assert get_active_config(path).checksum == get_active_config(path).checksum
