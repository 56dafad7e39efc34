"""
Tests for harvest_config.

Covers:
- Bundled default policy set
- Path resolution (argument, environment variable)
- Partial files fall back to defaults
- Validation of out-of-range values
- HARVEST_CONFIG_TRACE log line
"""

from decimal import Decimal

import pytest
import yaml

from harvest_config import CONFIG_ENV_VAR, FinancialsConfig, get_active_config
from harvest_config.loader import compute_checksum, load_config


def _write(path, data) -> None:
    path.write_text(yaml.safe_dump(data))


class TestDefaultConfig:
    """The bundled default set."""

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        config = get_active_config()

        assert config.financials.residual_value_rate == Decimal("0.10")
        assert config.financials.margin_floor == Decimal("-999.99")
        assert config.financials.margin_ceiling == Decimal("999.99")
        assert config.financials.low_revenue_threshold == Decimal("0.01")
        assert config.financials.clamp_crop_margin is True
        assert config.database.url == "sqlite+pysqlite:///:memory:"
        assert config.source_path.name == "default.yaml"
        assert len(config.checksum) == 64

    def test_matches_dataclass_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        assert get_active_config().financials == FinancialsConfig()

    def test_emits_config_trace(self, monkeypatch, captured_logs):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "HARVEST_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["checksum"] == config.checksum


class TestConfigResolution:
    """Choosing which file to load."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "policy.yaml"
        _write(path, {"financials": {"residual_value_rate": "0.25"}})

        config = get_active_config(path)

        assert config.financials.residual_value_rate == Decimal("0.25")
        assert config.source_path == path

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        _write(path, {"financials": {"clamp_crop_margin": False}})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = get_active_config()

        assert config.financials.clamp_crop_margin is False

    def test_missing_sections_use_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = load_config(path)

        assert config.financials == FinancialsConfig()
        assert config.database.pool_size == 20

    def test_yaml_float_kept_exact(self, tmp_path):
        path = tmp_path / "float.yaml"
        path.write_text("financials:\n  residual_value_rate: 0.1\n")

        config = load_config(path)

        assert config.financials.residual_value_rate == Decimal("0.1")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")


class TestConfigValidation:
    """Out-of-range values are rejected."""

    @pytest.mark.parametrize("rate", ["-0.1", "1", "1.5"])
    def test_residual_rate_out_of_range(self, tmp_path, rate):
        path = tmp_path / "bad.yaml"
        _write(path, {"financials": {"residual_value_rate": rate}})

        with pytest.raises(ValueError):
            load_config(path)

    def test_floor_above_ceiling(self):
        with pytest.raises(ValueError):
            FinancialsConfig(margin_floor=Decimal("10"), margin_ceiling=Decimal("5"))

    def test_negative_threshold(self):
        with pytest.raises(ValueError):
            FinancialsConfig(low_revenue_threshold=Decimal("-1"))

    def test_non_numeric_value(self, tmp_path):
        path = tmp_path / "bad.yaml"
        _write(path, {"financials": {"margin_ceiling": "lots"}})

        with pytest.raises(ValueError, match="margin_ceiling"):
            load_config(path)


class TestChecksum:
    """Checksums are deterministic."""

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_value_change_changes_checksum(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})
