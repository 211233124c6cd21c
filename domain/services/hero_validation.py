from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from domain.models import HeroContent
from domain.services.field_rules import (
    LANGUAGE_LABELS,
    FieldCheck,
    ValidationResult,
    check_text,
    error_key,
    get_nested_value,
    validate_link,
)
from domain.services.sanitization import sanitize_string

HERO_LIMITS: dict[str, int] = {
    "greeting": 50,
    "name": 30,
    "title": 100,
    "subtitle": 200,
    "ctaText": 30,
    "ctaLink": 200,
}

_LINK_ERROR = "CTA link must be a valid URL, relative path, or anchor link"


@dataclass(frozen=True)
class HeroFieldRule:
    label: str
    limit: int
    is_link: bool = False

    def check(self, raw: object) -> str | None:
        value = sanitize_string(raw) if isinstance(raw, str) else ""
        error = check_text(value, self.label, self.limit)
        if error is None and self.is_link and not validate_link(value):
            return _LINK_ERROR
        return error


def _bilingual_rules(field: str, label: str) -> dict[str, HeroFieldRule]:
    return {
        f"{field}.{lang}": HeroFieldRule(f"{LANGUAGE_LABELS[lang]} {label}", HERO_LIMITS[field])
        for lang in ("vi", "en")
    }


# Full and per-field validation both read this table.
HERO_FIELD_RULES: dict[str, HeroFieldRule] = {
    **_bilingual_rules("greeting", "greeting"),
    "name": HeroFieldRule("Name", HERO_LIMITS["name"]),
    **_bilingual_rules("title", "title"),
    **_bilingual_rules("subtitle", "subtitle"),
    **_bilingual_rules("ctaText", "CTA text"),
    "ctaLink": HeroFieldRule("CTA link", HERO_LIMITS["ctaLink"], is_link=True),
}


def validate_hero_content(content: HeroContent | Mapping[str, Any]) -> ValidationResult:
    payload = _as_payload(content)
    errors: dict[str, str] = {}
    for path, rule in HERO_FIELD_RULES.items():
        error = rule.check(get_nested_value(payload, path))
        if error:
            errors[error_key(path)] = error

    if errors:
        return ValidationResult.from_errors(errors)
    return ValidationResult.from_errors({}, _sanitized_hero(payload))


def validate_partial_hero_content(
    content: HeroContent | Mapping[str, Any],
    field_path: str,
) -> FieldCheck:
    """Validate a single dotted field path while the user is still typing.

    Values that are not strings and paths without a rule are reported as valid.
    """
    rule = HERO_FIELD_RULES.get(field_path)
    if rule is None:
        return FieldCheck(is_valid=True)
    value = get_nested_value(_as_payload(content), field_path)
    if not isinstance(value, str):
        return FieldCheck(is_valid=True)
    error = rule.check(value)
    return FieldCheck(is_valid=error is None, error=error)


def _as_payload(content: HeroContent | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(content, HeroContent):
        return content.to_dict()
    return content


def _sanitized_hero(payload: Mapping[str, Any]) -> HeroContent:
    def text(path: str) -> str:
        return sanitize_string(get_nested_value(payload, path))

    def pair(field: str) -> dict[str, str]:
        return {"vi": text(f"{field}.vi"), "en": text(f"{field}.en")}

    return HeroContent.model_validate(
        {
            "greeting": pair("greeting"),
            "name": text("name"),
            "title": pair("title"),
            "subtitle": pair("subtitle"),
            "ctaText": pair("ctaText"),
            "ctaLink": text("ctaLink"),
        }
    )
