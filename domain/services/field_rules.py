from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{10,}$")

_URL_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp", "ws", "wss"}

LANGUAGE_LABELS = {"vi": "Vietnamese", "en": "English"}


@dataclass
class ValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)
    sanitized_data: Any = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_errors(cls, errors: dict[str, str], sanitized_data: Any = None) -> ValidationResult:
        is_valid = not errors
        return cls(
            is_valid=is_valid,
            errors=errors,
            sanitized_data=sanitized_data if is_valid else None,
            field_errors={key: [message] for key, message in errors.items()},
        )


@dataclass(frozen=True)
class FieldCheck:
    is_valid: bool
    error: str | None = None


@dataclass
class IssueReport:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> IssueReport:
        return cls(is_valid=not errors, errors=errors)


def is_hex_color(value: object) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value))


def is_email(value: object) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_phone(value: object) -> bool:
    return isinstance(value, str) and bool(PHONE_PATTERN.match(value))


def is_valid_url(value: object) -> bool:
    if not isinstance(value, str):
        return False
    raw = value.strip()
    if not raw or any(char.isspace() for char in raw):
        return False
    parsed = urlparse(raw)
    if not parsed.scheme or not _URL_SCHEME.match(parsed.scheme):
        return False
    if parsed.scheme.lower() in _HIERARCHICAL_SCHEMES:
        return bool(parsed.netloc)
    return bool(parsed.netloc or parsed.path)


def validate_link(link: str) -> bool:
    trimmed = link.strip()
    if trimmed.startswith("#") or trimmed.startswith("/"):
        return len(trimmed) > 1
    return is_valid_url(trimmed)


def check_text(value: str, label: str, max_length: int, min_length: int = 0) -> str | None:
    if not value:
        return f"{label} is required"
    if len(value) > max_length:
        return f"{label} must be {max_length} characters or less"
    if min_length and len(value) < min_length:
        return f"{label} must be at least {min_length} characters long"
    return None


def get_nested_value(payload: Any, path: str) -> Any:
    current = payload
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
        if current is None:
            return None
    return current


def error_key(path: str) -> str:
    return path.replace(".", "_")
