"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ..errors import InvalidInputError
from ..models.records import Plot, Process
from .defaults import (
    SEED_PLOTS,
    SEED_PROCESSES,
    DefaultConfig,
    DisplayParams,
    LoggingParams,
    PersistenceParams,
    TrackerParams,
    get_default_config,
)
from .notification import (
    NotificationConfig,
    get_default_notification_config,
    parse_notification_config,
)
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)

SETTINGS_FILE = "settings.yaml"
CATALOG_FILE = "catalog.yaml"


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def _read_yaml(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidInputError(
                f"{filename} must contain a mapping",
                field=filename,
                value=type(data).__name__
            )
        return data

    def load_settings(self) -> dict[str, Any]:
        """Load the settings file overrides."""
        return self._read_yaml(SETTINGS_FILE)

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. settings.yaml in the config directory
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_settings())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_config(self, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """Merge, validate and build the typed configuration.

        Raises:
            InvalidInputError: when any merged value fails validation
        """
        merged = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error("Configuration validation failed", errors=error_msgs)
            raise InvalidInputError(
                "Invalid configuration",
                context={"errors": error_msgs}
            )

        try:
            return DefaultConfig(
                tracker=TrackerParams(**merged["tracker"]),
                persistence=PersistenceParams(**merged["persistence"]),
                display=DisplayParams(**merged["display"]),
                logging=LoggingParams(**merged["logging"]),
            )
        except TypeError as e:
            # Unknown keys inside a known section
            raise InvalidInputError(f"Invalid configuration: {e}") from e

    def load_notification_config(self) -> NotificationConfig:
        """Load notifier destinations from the ``notification`` settings section."""
        section = self.load_settings().get("notification")
        if not section:
            return get_default_notification_config()

        try:
            return parse_notification_config(section)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(
                f"Invalid notification configuration: {e}",
                field="notification",
                value=section
            ) from e

    def load_seed_catalog(self) -> tuple[list[Plot], list[Process]]:
        """Load the first-run catalog, preferring catalog.yaml over built-ins."""
        catalog = self._read_yaml(CATALOG_FILE)
        if not catalog:
            return list(SEED_PLOTS), list(SEED_PROCESSES)

        errors = ConfigValidator.validate_catalog(catalog)
        if errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            logger.error("Seed catalog validation failed", errors=error_msgs)
            raise InvalidInputError(
                "Invalid seed catalog",
                context={"errors": error_msgs}
            )

        plots = [Plot.from_dict(entry) for entry in catalog.get("plots", [])]
        processes = [Process.from_dict(entry) for entry in catalog.get("processes", [])]

        # A catalog file may override just one of the two sections
        if "plots" not in catalog:
            plots = list(SEED_PLOTS)
        if "processes" not in catalog:
            processes = list(SEED_PROCESSES)

        logger.info(
            "Loaded seed catalog override",
            path=str(self.config_dir / CATALOG_FILE),
            plots=len(plots),
            processes=len(processes)
        )
        return plots, processes

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
