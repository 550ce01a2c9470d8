"""Configuration file support for packedancestrymap."""

import logging
import tomllib
from pathlib import Path
from typing import Any

from .dispatcher import HANDLER_ERROR_POLICIES
from .reader import DecodeConfig

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

BOOL_KEYS = ("strict_header", "check_dimensions", "verify_integrity")

VALID_FIELDS = {
    "max_concurrency",
    "on_handler_error",
    "strict_header",
    "check_dimensions",
    "verify_integrity",
    "log_level",
}


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    if "max_concurrency" in config_dict:
        max_concurrency = config_dict["max_concurrency"]
        if max_concurrency is not None:
            if not isinstance(max_concurrency, int) or isinstance(max_concurrency, bool):
                raise ConfigValidationError(
                    f"max_concurrency must be an integer, got {type(max_concurrency).__name__}"
                )
            if max_concurrency <= 0:
                raise ConfigValidationError(
                    f"max_concurrency must be positive, got {max_concurrency}"
                )

    if "on_handler_error" in config_dict:
        policy = config_dict["on_handler_error"]
        if policy not in HANDLER_ERROR_POLICIES:
            raise ConfigValidationError(
                f"on_handler_error must be one of {HANDLER_ERROR_POLICIES}, got {policy!r}"
            )

    for key in BOOL_KEYS:
        if key in config_dict and not isinstance(config_dict[key], bool):
            raise ConfigValidationError(
                f"{key} must be a boolean, got {type(config_dict[key]).__name__}"
            )

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> DecodeConfig:
    """Load configuration from a TOML file.

    Settings live under a ``[packedancestrymap]`` table; unknown keys are ignored.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict of values to override loaded config.

    Returns:
        DecodeConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    config_dict = dict(toml_data.get("packedancestrymap", {}))

    if overrides:
        config_dict.update(overrides)

    validate_config(config_dict)

    ignored = set(config_dict) - VALID_FIELDS
    if ignored:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(ignored)))

    filtered_config = {k: v for k, v in config_dict.items() if k in VALID_FIELDS}
    if "log_level" in filtered_config:
        filtered_config["log_level"] = filtered_config["log_level"].upper()

    return DecodeConfig(**filtered_config)
