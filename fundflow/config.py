"""Configuration file management for fundflow."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from fundflow.domain.matching import ScoringConfig


@dataclass(frozen=True)
class Settings:
    """Effective settings: file values merged over defaults."""

    currency_symbol: str = "$"
    db_path: Path | None = None
    busy_timeout: float = 5.0
    log_level: str = "WARNING"
    log_json: bool = False
    matching: ScoringConfig = field(default_factory=ScoringConfig)


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "fundflow" / "config.toml"


def default_config() -> dict[str, Any]:
    """Config file contents written by `fundflow init`."""
    matching = ScoringConfig()
    return {
        "currency_symbol": "$",
        "database": {"path": "", "busy_timeout": 5.0},
        "logging": {"level": "WARNING", "json": False},
        "matching": {
            "amount_threshold": matching.amount_threshold,
            "date_window_days": matching.date_window_days,
            "min_confidence": matching.min_confidence,
            "amount_weight": matching.amount_weight,
            "date_weight": matching.date_weight,
            "merchant_weight": matching.merchant_weight,
        },
    }


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    save_config(default_config(), config_path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be true or false, got {value!r}")
    return value


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Merge a config dictionary over the defaults.

    Raises:
        ValueError: If a value has the wrong type.
    """
    database = config.get("database", {})
    logging_table = config.get("logging", {})
    matching_table = config.get("matching", {})
    defaults = ScoringConfig()

    try:
        matching = ScoringConfig(
            amount_threshold=float(matching_table.get("amount_threshold", defaults.amount_threshold)),
            date_window_days=int(matching_table.get("date_window_days", defaults.date_window_days)),
            min_confidence=float(matching_table.get("min_confidence", defaults.min_confidence)),
            amount_weight=float(matching_table.get("amount_weight", defaults.amount_weight)),
            date_weight=float(matching_table.get("date_weight", defaults.date_weight)),
            merchant_weight=float(matching_table.get("merchant_weight", defaults.merchant_weight)),
        )
        db_path_value = str(database.get("path", "") or "")
        return Settings(
            currency_symbol=str(config.get("currency_symbol", "$")),
            db_path=Path(db_path_value).expanduser() if db_path_value else None,
            busy_timeout=float(database.get("busy_timeout", 5.0)),
            log_level=str(logging_table.get("level", "WARNING")).upper(),
            log_json=_as_bool(logging_table.get("json", False), "logging.json"),
            matching=matching,
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when no config file exists.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Effective settings.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        return Settings()
    return settings_from_config(config)
