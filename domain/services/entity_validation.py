from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from domain.models import EntityKind
from domain.services.about_validation import validate_about_content
from domain.services.content_validation import (
    validate_blog_posts,
    validate_contact_info,
    validate_projects,
    validate_services,
)
from domain.services.field_rules import ValidationResult
from domain.services.hero_validation import validate_hero_content
from domain.services.settings_validation import validate_system_settings

Validator = Callable[[Any], ValidationResult]

VALIDATORS: Mapping[EntityKind, Validator] = MappingProxyType(
    {
        EntityKind.HERO: validate_hero_content,
        EntityKind.ABOUT: validate_about_content,
        EntityKind.SERVICES: validate_services,
        EntityKind.PROJECTS: validate_projects,
        EntityKind.BLOG_POSTS: validate_blog_posts,
        EntityKind.CONTACT_INFO: validate_contact_info,
        EntityKind.SYSTEM_SETTINGS: validate_system_settings,
    }
)

_COLLECTION_KINDS = frozenset({EntityKind.SERVICES, EntityKind.PROJECTS, EntityKind.BLOG_POSTS})

_unmapped = set(EntityKind) - set(VALIDATORS)
if _unmapped:
    msg = f"Entity kinds without a validator: {sorted(kind.value for kind in _unmapped)}"
    raise RuntimeError(msg)


def validate_entity(kind: EntityKind | str, payload: object) -> ValidationResult:
    try:
        entity_kind = EntityKind(kind)
    except ValueError:
        return ValidationResult.from_errors({"general": f"Unknown data type: {kind}"})

    if entity_kind in _COLLECTION_KINDS:
        if not isinstance(payload, list):
            return ValidationResult.from_errors({"general": f"{entity_kind.value} must be an array"})
    elif not isinstance(payload, Mapping):
        return ValidationResult.from_errors({"general": f"{entity_kind.value} must be an object"})
    return VALIDATORS[entity_kind](payload)
