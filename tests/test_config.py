"""Tests for configuration loading."""

from decimal import Decimal
from pathlib import Path

import pytest

from spending_insights.config import (
    DEFAULT_PERIODS,
    Config,
    ConfigError,
    load_config,
    load_yaml_file,
)


def write_settings(config_dir: Path, content: str) -> Path:
    """Helper to write settings.yaml into a config directory."""
    path = config_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test defaults apply when settings.yaml does not exist."""
        config = load_config(config_dir=tmp_path)

        assert config.imports.default_currency == "TRY"
        assert config.imports.amount_locale == "auto"
        assert config.subscriptions.lookback_months == 6
        assert config.subscriptions.periods == DEFAULT_PERIODS
        assert config.anomalies.sigma_multiple == Decimal("2.0")
        assert config.anomalies.min_deviation_ratio == Decimal("0")
        assert config.leaks.top_n == 5
        assert config.logging.file is None

    def test_overrides(self, tmp_path: Path) -> None:
        """Test values in settings.yaml override the defaults."""
        write_settings(
            tmp_path,
            """
import:
  default_currency: usd
  amount_locale: EU
subscriptions:
  lookback_months: 12
  max_amount_variation: 0.05
anomalies:
  baseline_months: 3
  group_by_merchant: false
leaks:
  top_n: 3
  include_new_categories: false
logging:
  level: DEBUG
  file: logs/insights.log
""",
        )

        config = load_config(config_dir=tmp_path)

        assert config.imports.default_currency == "USD"
        assert config.imports.amount_locale == "EU"
        assert config.subscriptions.lookback_months == 12
        assert config.subscriptions.max_amount_variation == Decimal("0.05")
        assert config.anomalies.baseline_months == 3
        assert config.anomalies.group_by_merchant is False
        assert config.leaks.top_n == 3
        assert config.leaks.include_new_categories is False
        assert config.logging.file == "logs/insights.log"

    def test_explicit_settings_path(self, tmp_path: Path) -> None:
        """Test an explicit settings path wins over the config directory."""
        path = tmp_path / "custom.yaml"
        path.write_text("leaks:\n  top_n: 9\n", encoding="utf-8")

        assert load_config(settings_path=path, config_dir=tmp_path / "unused").leaks.top_n == 9

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty settings file gives defaults."""
        write_settings(tmp_path, "")
        assert load_config(config_dir=tmp_path) == Config()

    def test_section_must_be_mapping(self, tmp_path: Path) -> None:
        """Test a list where a mapping is expected raises ConfigError."""
        write_settings(tmp_path, "anomalies:\n  - 1\n  - 2\n")
        with pytest.raises(ConfigError, match="anomalies"):
            load_config(config_dir=tmp_path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        """Test an unparseable number raises ConfigError."""
        write_settings(tmp_path, "leaks:\n  top_n: lots\n")
        with pytest.raises(ConfigError):
            load_config(config_dir=tmp_path)

    def test_invalid_amount_locale(self, tmp_path: Path) -> None:
        """Test only US, EU and auto are accepted."""
        write_settings(tmp_path, "import:\n  amount_locale: FR\n")
        with pytest.raises(ConfigError, match="amount_locale"):
            load_config(config_dir=tmp_path)

    def test_custom_periods(self, tmp_path: Path) -> None:
        """Test period bands can be replaced."""
        write_settings(tmp_path, "subscriptions:\n  periods:\n    biweekly: [13, 15]\n")

        config = load_config(config_dir=tmp_path)

        assert config.subscriptions.periods == {"biweekly": (13, 15)}

    def test_bad_period_band(self, tmp_path: Path) -> None:
        """Test a period whose minimum exceeds its maximum is rejected."""
        write_settings(tmp_path, "subscriptions:\n  periods:\n    monthly: [35, 26]\n")
        with pytest.raises(ConfigError, match="monthly"):
            load_config(config_dir=tmp_path)

    def test_min_samples_floor(self, tmp_path: Path) -> None:
        """Test min_samples below two is raised to two."""
        write_settings(tmp_path, "anomalies:\n  min_samples: 1\n")
        assert load_config(config_dir=tmp_path).anomalies.min_samples == 2


class TestLoadYamlFile:
    """Tests for load_yaml_file."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test broken YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("key: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        """Test a top-level list raises ConfigError."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml_file(path)
