"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..utils.time import resolve_timezone

SUPPORTED_BACKENDS = ("sqlite", "memory")
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters and seed catalogs."""

    @staticmethod
    def validate_tracker_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate tracker parameters."""
        errors = []

        if "tick_interval_seconds" in params:
            value = params["tick_interval_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="tick_interval_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "auto_start_ticking" in params:
            value = params["auto_start_ticking"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="auto_start_ticking",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_persistence_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate persistence parameters."""
        errors = []

        if "backend" in params:
            value = params["backend"]
            if value not in SUPPORTED_BACKENDS:
                errors.append(ValidationError(
                    field="backend",
                    message=f"Must be one of {', '.join(SUPPORTED_BACKENDS)}",
                    value=value
                ))

        if "db_path" in params:
            value = params["db_path"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="db_path",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_display_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate display parameters."""
        errors = []

        if "timezone" in params:
            value = params["timezone"]
            try:
                if not isinstance(value, str):
                    raise TypeError(value)
                resolve_timezone(value)
            except (KeyError, ValueError, TypeError):
                errors.append(ValidationError(
                    field="timezone",
                    message="Must be a valid IANA timezone name",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in SUPPORTED_LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(SUPPORTED_LOG_LEVELS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_catalog(catalog: dict[str, Any]) -> list[ValidationError]:
        """Validate a seed catalog override (``plots`` and ``processes`` lists)."""
        errors = []

        for section in ("plots", "processes"):
            entries = catalog.get(section, [])
            if not isinstance(entries, list):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a list",
                    value=entries
                ))
                continue

            seen_ids = set()
            for index, entry in enumerate(entries):
                field = f"{section}[{index}]"
                if not isinstance(entry, dict):
                    errors.append(ValidationError(field=field, message="Must be a mapping", value=entry))
                    continue

                entry_id = entry.get("id")
                if isinstance(entry_id, bool) or not isinstance(entry_id, int):
                    errors.append(ValidationError(
                        field=f"{field}.id",
                        message="Must be an integer",
                        value=entry_id
                    ))
                elif entry_id in seen_ids:
                    errors.append(ValidationError(
                        field=f"{field}.id",
                        message="Must be unique",
                        value=entry_id
                    ))
                else:
                    seen_ids.add(entry_id)

                if section == "processes":
                    duration = entry.get("duration")
                    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
                        errors.append(ValidationError(
                            field=f"{field}.duration",
                            message="Must be a positive integer number of minutes",
                            value=duration
                        ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "tracker" in config:
            errors.extend(ConfigValidator.validate_tracker_params(config["tracker"]))

        if "persistence" in config:
            errors.extend(ConfigValidator.validate_persistence_params(config["persistence"]))

        if "display" in config:
            errors.extend(ConfigValidator.validate_display_params(config["display"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
