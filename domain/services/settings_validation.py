from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import orjson

from domain.models import LANGUAGES, THEMES, SystemSettings
from domain.services.field_rules import IssueReport, ValidationResult, is_hex_color
from domain.services.sanitization import MAX_PALETTE_COLORS, MIN_PALETTE_COLORS

SETTINGS_BACKUP_TYPE = "system-settings-backup"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemSettingsValidationOptions:
    min_colors: int = MIN_PALETTE_COLORS
    max_colors: int = MAX_PALETTE_COLORS
    allowed_languages: tuple[str, ...] = LANGUAGES
    allowed_themes: tuple[str, ...] = THEMES
    require_color_palette: bool = True


def validate_system_settings(
    settings: Mapping[str, Any],
    options: SystemSettingsValidationOptions | None = None,
) -> ValidationResult:
    opts = options or SystemSettingsValidationOptions()
    errors: dict[str, str] = {}

    language = settings.get("defaultLanguage")
    if language is not None:
        if not isinstance(language, str):
            errors["defaultLanguage"] = "Default language must be a string"
        elif language not in opts.allowed_languages:
            allowed = ", ".join(opts.allowed_languages)
            errors["defaultLanguage"] = f"Default language must be one of: {allowed}"

    theme = settings.get("defaultTheme")
    if theme is not None:
        if not isinstance(theme, str):
            errors["defaultTheme"] = "Default theme must be a string"
        elif theme not in opts.allowed_themes:
            allowed = ", ".join(opts.allowed_themes)
            errors["defaultTheme"] = f"Default theme must be one of: {allowed}"

    maintenance = settings.get("maintenanceMode")
    if maintenance is not None and not isinstance(maintenance, bool):
        errors["maintenanceMode"] = "Maintenance mode must be a boolean"

    palette = settings.get("colorPalette")
    if palette is not None:
        palette_error = _palette_error(palette, opts)
        if palette_error:
            errors["colorPalette"] = palette_error
    elif opts.require_color_palette:
        errors["colorPalette"] = "Color palette is required"

    sanitized: SystemSettings | None = None
    if not errors and _is_complete(settings):
        sanitized = SystemSettings(
            default_language=settings["defaultLanguage"],
            default_theme=settings["defaultTheme"],
            color_palette=[color.upper() for color in settings["colorPalette"]],
            maintenance_mode=settings["maintenanceMode"],
        )
    return ValidationResult.from_errors(errors, sanitized)


def _palette_error(palette: object, opts: SystemSettingsValidationOptions) -> str | None:
    if not isinstance(palette, list):
        return "Color palette must be an array"
    # Cardinality is reported on its own before any per-colour problems.
    if len(palette) < opts.min_colors:
        return f"Color palette must contain at least {opts.min_colors} colors"
    if len(palette) > opts.max_colors:
        return f"Color palette cannot contain more than {opts.max_colors} colors"

    problems = _color_problems(palette)
    if problems:
        return "; ".join(problems)
    canonical = [color.upper() for color in palette]
    if len(set(canonical)) != len(canonical):
        return "Color palette contains duplicate colors"
    return None


def _color_problems(colors: Sequence[object]) -> list[str]:
    problems: list[str] = []
    for index, color in enumerate(colors):
        if not isinstance(color, str):
            problems.append(f"Color at index {index} is not a string")
        elif not is_hex_color(color):
            problems.append(f'Color "{color}" at index {index} is not a valid hex color')
    return problems


def _is_complete(settings: Mapping[str, Any]) -> bool:
    return all(
        settings.get(name) is not None
        for name in ("defaultLanguage", "defaultTheme", "colorPalette", "maintenanceMode")
    )


def validate_color_palette(colors: object) -> IssueReport:
    if not isinstance(colors, list):
        return IssueReport.from_errors(["Color palette must be an array"])

    errors: list[str] = []
    if len(colors) < MIN_PALETTE_COLORS:
        errors.append(f"Color palette must contain at least {MIN_PALETTE_COLORS} colors")
    if len(colors) > MAX_PALETTE_COLORS:
        errors.append(f"Color palette cannot contain more than {MAX_PALETTE_COLORS} colors")
    errors.extend(_color_problems(colors))

    canonical = [color.upper() for color in colors if isinstance(color, str)]
    if len(set(canonical)) != len(canonical):
        errors.append("Color palette contains duplicate colors")
    return IssueReport.from_errors(errors)


def get_system_settings_defaults() -> SystemSettings:
    return SystemSettings(
        default_language="vi",
        default_theme="dark",
        color_palette=[
            "#3B82F6",
            "#10B981",
            "#F59E0B",
            "#EF4444",
            "#8B5CF6",
            "#06B6D4",
            "#84CC16",
            "#F97316",
        ],
        maintenance_mode=False,
    )


def create_system_settings_backup(
    settings: SystemSettings,
    clock: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> str:
    backup = {
        "settings": settings.to_dict(),
        "timestamp": clock().isoformat(),
        "version": "1.0",
        "type": SETTINGS_BACKUP_TYPE,
    }
    return orjson.dumps(backup, option=orjson.OPT_INDENT_2).decode("utf-8")


def restore_system_settings_from_backup(backup_json: str) -> SystemSettings | None:
    try:
        parsed = orjson.loads(backup_json)
    except orjson.JSONDecodeError:
        logger.warning("System settings backup is not valid JSON")
        return None
    if not isinstance(parsed, dict) or parsed.get("type") != SETTINGS_BACKUP_TYPE:
        logger.warning("Unexpected backup type in system settings backup")
        return None
    settings = parsed.get("settings")
    if not isinstance(settings, dict):
        logger.warning("No settings found in system settings backup")
        return None

    result = validate_system_settings(settings)
    if not result.is_valid:
        logger.warning(
            "Invalid settings in backup: %s",
            ", ".join(result.errors.values()),
        )
        return None
    return result.sanitized_data
