from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from domain.models import AboutContent
from domain.services.field_rules import (
    LANGUAGE_LABELS,
    ValidationResult,
    check_text,
    get_nested_value,
)
from domain.services.sanitization import sanitize_string

_DATA_URL = re.compile(r"^data:([a-zA-Z0-9][a-zA-Z0-9/+.\-]*);base64,([a-zA-Z0-9+/]+=*)$")
_PLACEHOLDERS = ("lorem ipsum", "placeholder", "sample text", "example")


@dataclass(frozen=True)
class AboutValidationOptions:
    max_description_length: int = 500
    min_description_length: int = 10
    max_experience_length: int = 300
    min_experience_length: int = 5
    require_image: bool = True
    allowed_image_types: tuple[str, ...] = ("image/jpeg", "image/png", "image/gif", "image/webp")
    max_image_size: int = 5 * 1024 * 1024


@dataclass(frozen=True)
class ContentCompleteness:
    completeness: int
    missing_fields: list[str]
    suggestions: list[str]


@dataclass(frozen=True)
class ContentIssue:
    type: Literal["warning", "error"]
    message: str


def validate_about_content(
    content: AboutContent | Mapping[str, Any],
    options: AboutValidationOptions | None = None,
) -> ValidationResult:
    opts = options or AboutValidationOptions()
    payload = content.to_dict() if isinstance(content, AboutContent) else content
    errors: dict[str, str] = {}
    texts: dict[str, dict[str, str]] = {"description": {}, "experience": {}}

    limits = {
        "description": (opts.min_description_length, opts.max_description_length),
        "experience": (opts.min_experience_length, opts.max_experience_length),
    }
    for field, (min_length, max_length) in limits.items():
        for lang, label in LANGUAGE_LABELS.items():
            value = _text(get_nested_value(payload, f"{field}.{lang}"))
            texts[field][lang] = value
            error = check_text(value, f"{label} {field}", max_length, min_length)
            if error:
                errors[f"{field}_{lang}"] = error

    image = _text(payload.get("profileImage"))
    image_error = _image_error(image, opts)
    if image_error:
        errors["profileImage"] = image_error

    sanitized = AboutContent.model_validate(
        {
            "description": texts["description"],
            "experience": texts["experience"],
            "profileImage": image,
        }
    )
    return ValidationResult.from_errors(errors, sanitized)


def _image_error(image: str, opts: AboutValidationOptions) -> str | None:
    if not image:
        return "Profile image is required" if opts.require_image else None
    if image.startswith("data:"):
        match = _DATA_URL.match(image)
        if not match:
            return "Invalid image format"
        if match.group(1) not in opts.allowed_image_types:
            return f"Image type not supported. Use: {', '.join(opts.allowed_image_types)}"
        if estimate_data_url_size(image) > opts.max_image_size:
            max_mb = opts.max_image_size / (1024 * 1024)
            return f"Image size too large. Maximum size is {max_mb:g}MB"
        return None
    if not image.startswith("http") and not image.startswith("/"):
        return "Image must be a valid URL or data URL"
    return None


def estimate_data_url_size(data_url: str) -> int:
    if not data_url.startswith("data:"):
        return 0
    _, _, encoded = data_url.partition(",")
    return len(encoded) * 3 // 4


def validate_content_completeness(content: AboutContent) -> ContentCompleteness:
    checks = [
        (content.description.vi, 10, "Vietnamese description", "a detailed Vietnamese description"),
        (content.description.en, 10, "English description", "a detailed English description"),
        (content.experience.vi, 5, "Vietnamese experience", "a Vietnamese experience highlight"),
        (content.experience.en, 5, "English experience", "an English experience highlight"),
    ]
    missing: list[str] = []
    suggestions: list[str] = []
    for value, min_length, name, hint in checks:
        if len(value.strip()) < min_length:
            missing.append(name)
            suggestions.append(f"Add {hint} (at least {min_length} characters)")
    if not content.profile_image.strip():
        missing.append("Profile image")
        suggestions.append("Upload a professional profile image")

    total = len(checks) + 1
    completed = total - len(missing)
    return ContentCompleteness(
        completeness=round(completed / total * 100),
        missing_fields=missing,
        suggestions=suggestions,
    )


def detect_potential_issues(content: AboutContent) -> list[ContentIssue]:
    issues: list[ContentIssue] = []
    for lang, label in LANGUAGE_LABELS.items():
        if len(getattr(content.description, lang).strip()) < 50:
            issues.append(
                ContentIssue("warning", f"{label} description is quite short, consider adding detail")
            )

    if content.description.vi.strip() == content.description.en.strip():
        issues.append(ContentIssue("warning", "Vietnamese and English descriptions are identical"))
    if content.experience.vi.strip() == content.experience.en.strip():
        issues.append(
            ContentIssue("warning", "Vietnamese and English experience highlights are identical")
        )

    combined = " ".join(
        [content.description.vi, content.description.en, content.experience.vi, content.experience.en]
    ).lower()
    for placeholder in _PLACEHOLDERS:
        if placeholder in combined:
            issues.append(ContentIssue("error", f'Placeholder text detected: "{placeholder}"'))

    image = content.profile_image
    if image and not image.startswith(("data:", "http", "/")):
        issues.append(ContentIssue("error", "Profile image URL appears to be invalid"))
    return issues


def _text(value: object) -> str:
    return sanitize_string(value) if isinstance(value, str) else ""
