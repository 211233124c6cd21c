from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from domain.errors import MigrationError, MigrationPathError

logger = logging.getLogger(__name__)

Payload = dict[str, Any]


@dataclass(frozen=True)
class MigrationRule:
    from_version: str
    to_version: str
    migrate: Callable[[Payload], Payload]
    description: str


def _with_order(service: Payload) -> Payload:
    return {**service, "order": service.get("order") or 0}


def _add_service_order(data: Payload) -> Payload:
    services = data.get("services")
    if isinstance(services, list):
        data["services"] = [
            _with_order(service) if isinstance(service, dict) else service for service in services
        ]
    return data


DEFAULT_MIGRATIONS: tuple[MigrationRule, ...] = (
    MigrationRule("0.9.0", "1.0.0", _add_service_order, "Add order field to services"),
)


def parse_version(version: str) -> tuple[int, ...]:
    parts = version.strip().split(".")
    if not version.strip() or not all(part.isdigit() for part in parts):
        msg = f"Unrecognised version string: {version!r}"
        raise ValueError(msg)
    return tuple(int(part) for part in parts)


def compare_versions(left: str, right: str) -> int:
    left_parts = parse_version(left)
    right_parts = parse_version(right)
    width = max(len(left_parts), len(right_parts))
    left_parts += (0,) * (width - len(left_parts))
    right_parts += (0,) * (width - len(right_parts))
    return (left_parts > right_parts) - (left_parts < right_parts)


def plan_migrations(
    from_version: str,
    to_version: str,
    rules: Sequence[MigrationRule] = DEFAULT_MIGRATIONS,
) -> list[MigrationRule]:
    """Select the rules to apply, in list order, or raise when the chain stops short."""
    planned: list[MigrationRule] = []
    current = from_version
    for rule in rules:
        if rule.from_version != current:
            continue
        if compare_versions(rule.to_version, to_version) > 0:
            continue
        planned.append(rule)
        current = rule.to_version
    if current != to_version:
        raise MigrationPathError(from_version, to_version, current)
    return planned


def apply_migrations(
    data: Payload,
    from_version: str,
    to_version: str,
    rules: Sequence[MigrationRule] = DEFAULT_MIGRATIONS,
) -> Payload:
    planned = plan_migrations(from_version, to_version, rules)
    migrated = copy.deepcopy(data)
    for rule in planned:
        try:
            migrated = rule.migrate(migrated)
        except Exception as exc:
            msg = f"Migration failed: {rule.description}"
            raise MigrationError(msg) from exc
        logger.info(
            "Applied migration %s -> %s: %s", rule.from_version, rule.to_version, rule.description
        )
    return migrated
