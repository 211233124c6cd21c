from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from domain.models import LANGUAGES, THEMES, BilingualText

MIN_PALETTE_COLORS = 4
MAX_PALETTE_COLORS = 16

_CONTROL_CHARS = re.compile("[\u0000-\u001f\u007f-\u009f]")
_WHITESPACE_RUN = re.compile(r"\s+")
_MARKUP_BRACKETS = re.compile(r"[<>]")
_HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


def sanitize_string(value: str) -> str:
    # Tabs and newlines fall in the C0 range and are dropped, not turned into spaces.
    cleaned = _CONTROL_CHARS.sub("", value.strip())
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def sanitize_bilingual(text: BilingualText | Mapping[str, Any]) -> BilingualText:
    if isinstance(text, BilingualText):
        return BilingualText(vi=sanitize_string(text.vi), en=sanitize_string(text.en))
    return BilingualText(
        vi=sanitize_string(_as_text(text.get("vi"))),
        en=sanitize_string(_as_text(text.get("en"))),
    )


def sanitize_text_content(value: str) -> str:
    return _MARKUP_BRACKETS.sub("", sanitize_string(value))


def canonical_color(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not _HEX_COLOR.match(candidate):
        return None
    return candidate.upper()


def canonical_language(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    return candidate if candidate in LANGUAGES else None


def canonical_theme(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    return candidate if candidate in THEMES else None


def sanitize_system_settings(settings: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the settings fields that can be coerced into a valid shape.

    Invalid fields are dropped rather than replaced with defaults, so callers can merge the
    result over whatever they already hold.
    """
    sanitized: dict[str, Any] = {}

    language = canonical_language(settings.get("defaultLanguage"))
    if language:
        sanitized["defaultLanguage"] = language

    theme = canonical_theme(settings.get("defaultTheme"))
    if theme:
        sanitized["defaultTheme"] = theme

    if settings.get("maintenanceMode") is not None:
        sanitized["maintenanceMode"] = bool(settings["maintenanceMode"])

    palette = settings.get("colorPalette")
    if isinstance(palette, list):
        unique: list[str] = []
        for item in palette:
            color = canonical_color(item)
            if color and color not in unique:
                unique.append(color)
        if len(unique) >= MIN_PALETTE_COLORS:
            sanitized["colorPalette"] = unique[:MAX_PALETTE_COLORS]

    return sanitized


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""
