"""Configuration loading for importer and detector thresholds."""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional

import yaml

from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


# Type-column vocabularies (matched case-insensitively)
DEFAULT_INCOME_TYPES = [
    "income", "credit", "cr", "c", "deposit", "in", "gelir", "alacak", "giris", "giriş",
]
DEFAULT_EXPENSE_TYPES = [
    "expense", "debit", "dr", "d", "withdrawal", "payment", "out", "gider", "borc", "borç", "cikis", "çıkış",
]

# Period label -> inclusive (min_days, max_days) band for the median interval
DEFAULT_PERIODS = {
    "weekly": (6, 8),
    "monthly": (26, 35),
    "quarterly": (85, 97),
    "yearly": (355, 375),
}


def _as_dict(data: object, section: str) -> dict[str, object]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"'{section}' must be a mapping, got {type(data).__name__}")
    return data


@dataclass
class ImportConfig:
    """Configuration for CSV import.

    Attributes:
        default_currency: Currency used when the caller passes none.
        amount_locale: "US", "EU", or "auto" (EU for dd.mm.yyyy files, else US).
        income_types: Type-column values meaning income.
        expense_types: Type-column values meaning expense.
    """

    default_currency: str = "TRY"
    amount_locale: str = "auto"
    income_types: list[str] = field(default_factory=lambda: list(DEFAULT_INCOME_TYPES))
    expense_types: list[str] = field(default_factory=lambda: list(DEFAULT_EXPENSE_TYPES))

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ImportConfig":
        """Create from dictionary."""
        locale = str(data.get("amount_locale", "auto")).upper()
        if locale not in ("US", "EU", "AUTO"):
            raise ConfigError(f"amount_locale must be US, EU or auto, got {locale!r}")
        return cls(
            default_currency=str(data.get("default_currency", "TRY")).upper(),
            amount_locale=locale.lower() if locale == "AUTO" else locale,
            income_types=[str(t) for t in data.get("income_types", DEFAULT_INCOME_TYPES)],  # type: ignore[union-attr]
            expense_types=[str(t) for t in data.get("expense_types", DEFAULT_EXPENSE_TYPES)],  # type: ignore[union-attr]
        )


@dataclass
class SubscriptionConfig:
    """Configuration for subscription detection.

    Attributes:
        lookback_months: Default window when the caller does not pass one.
        min_occurrences: Charges needed before a merchant is considered.
        max_amount_variation: Highest allowed coefficient of variation of the amounts.
        min_regular_fraction: Share of intervals that must fall inside the period band.
        periods: Period label to (min_days, max_days) band for the median interval.
    """

    lookback_months: int = 6
    min_occurrences: int = 3
    max_amount_variation: Decimal = field(default_factory=lambda: Decimal("0.10"))
    min_regular_fraction: float = 0.6
    periods: dict[str, tuple[int, int]] = field(default_factory=lambda: dict(DEFAULT_PERIODS))

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "SubscriptionConfig":
        """Create from dictionary."""
        periods = dict(DEFAULT_PERIODS)
        raw_periods = _as_dict(data.get("periods"), "subscriptions.periods")
        if raw_periods:
            periods = {}
            for label, band in raw_periods.items():
                if not isinstance(band, (list, tuple)) or len(band) != 2:
                    raise ConfigError(f"Period '{label}' must be a [min_days, max_days] pair")
                low, high = int(band[0]), int(band[1])
                if low > high:
                    raise ConfigError(f"Period '{label}' has min_days greater than max_days")
                periods[str(label)] = (low, high)

        return cls(
            lookback_months=int(data.get("lookback_months", 6)),  # type: ignore[arg-type]
            min_occurrences=max(2, int(data.get("min_occurrences", 3))),  # type: ignore[arg-type]
            max_amount_variation=Decimal(str(data.get("max_amount_variation", "0.10"))),
            min_regular_fraction=float(data.get("min_regular_fraction", 0.6)),  # type: ignore[arg-type]
            periods=periods,
        )


@dataclass
class AnomalyConfig:
    """Configuration for anomaly detection.

    Attributes:
        baseline_months: Calendar months before the target month used as history.
        min_samples: Transactions a group needs before it gets a baseline.
        sigma_multiple: Deviation, in standard deviations, that counts as anomalous.
        mean_multiple: Amount, as a multiple of the mean, that is always anomalous.
        min_deviation_ratio: Smallest deviation (fraction of the mean) the sigma rule may flag; 0 disables the floor.
        group_by_merchant: Fall back to a merchant baseline when no category baseline applies.
    """

    baseline_months: int = 6
    min_samples: int = 3
    sigma_multiple: Decimal = field(default_factory=lambda: Decimal("2.0"))
    mean_multiple: Decimal = field(default_factory=lambda: Decimal("2.0"))
    min_deviation_ratio: Decimal = field(default_factory=lambda: Decimal("0"))
    group_by_merchant: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AnomalyConfig":
        """Create from dictionary."""
        return cls(
            baseline_months=int(data.get("baseline_months", 6)),  # type: ignore[arg-type]
            min_samples=max(2, int(data.get("min_samples", 3))),  # type: ignore[arg-type]
            sigma_multiple=Decimal(str(data.get("sigma_multiple", "2.0"))),
            mean_multiple=Decimal(str(data.get("mean_multiple", "2.0"))),
            min_deviation_ratio=Decimal(str(data.get("min_deviation_ratio", "0"))),
            group_by_merchant=bool(data.get("group_by_merchant", True)),
        )


@dataclass
class LeakConfig:
    """Configuration for month-over-month leak ranking.

    Attributes:
        top_n: Maximum leaks returned.
        include_new_categories: Report categories with no spend in the previous month.
        min_increase_percent: Smallest percentage increase reported.
    """

    top_n: int = 5
    include_new_categories: bool = True
    min_increase_percent: Decimal = field(default_factory=lambda: Decimal("0"))

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LeakConfig":
        """Create from dictionary."""
        return cls(
            top_n=int(data.get("top_n", 5)),  # type: ignore[arg-type]
            include_new_categories=bool(data.get("include_new_categories", True)),
            min_increase_percent=Decimal(str(data.get("min_increase_percent", "0"))),
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional path to a log file.
    """

    level: str = "INFO"
    file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        log_file = data.get("file")
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(log_file) if log_file else None,
        )


@dataclass
class Config:
    """Main configuration container."""

    imports: ImportConfig = field(default_factory=ImportConfig)
    subscriptions: SubscriptionConfig = field(default_factory=SubscriptionConfig)
    anomalies: AnomalyConfig = field(default_factory=AnomalyConfig)
    leaks: LeakConfig = field(default_factory=LeakConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Config":
        """Create from the parsed contents of settings.yaml.

        Raises:
            ConfigError: If a section has the wrong shape or a value is invalid.
        """
        try:
            return cls(
                imports=ImportConfig.from_dict(_as_dict(data.get("import"), "import")),
                subscriptions=SubscriptionConfig.from_dict(_as_dict(data.get("subscriptions"), "subscriptions")),
                anomalies=AnomalyConfig.from_dict(_as_dict(data.get("anomalies"), "anomalies")),
                leaks=LeakConfig.from_dict(_as_dict(data.get("leaks"), "leaks")),
                logging=LoggingConfig.from_dict(_as_dict(data.get("logging"), "logging")),
            )
        except ConfigError:
            raise
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ConfigError(f"Invalid setting: {e}") from e


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not a YAML mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml, falling back to defaults.

    Args:
        settings_path: Path to settings.yaml (or None to use the default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    if not settings_path.exists():
        logger.warning(f"Settings file not found: {settings_path}, using defaults")
        return Config()

    config = Config.from_dict(load_yaml_file(settings_path))
    logger.info(f"Loaded settings from {settings_path}")
    return config
