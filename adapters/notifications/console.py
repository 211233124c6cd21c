from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.console import Console

from domain.ports.notifications import NotificationAction, NotificationKind

logger = logging.getLogger(__name__)

_STYLES: dict[str, str] = {
    "success": "green",
    "error": "red",
    "warning": "yellow",
    "info": "cyan",
}

_LOG_LEVELS: dict[str, int] = {
    "success": logging.INFO,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    message: str
    actions: tuple[NotificationAction, ...] = ()


class RichNotificationSink:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(
        self,
        kind: NotificationKind,
        title: str,
        message: str,
        actions: Sequence[NotificationAction] = (),
    ) -> None:
        style = _STYLES.get(kind, "white")
        self.console.print(f"[bold {style}]{title}[/] {message}")
        for action in actions:
            self.console.print(f"  [dim]-> {action.label}[/]")


class LoggingNotificationSink:
    def notify(
        self,
        kind: NotificationKind,
        title: str,
        message: str,
        actions: Sequence[NotificationAction] = (),
    ) -> None:
        logger.log(_LOG_LEVELS.get(kind, logging.INFO), "%s: %s", title, message)


@dataclass
class CollectingNotificationSink:
    """Keeps every notification in memory, newest last."""

    notifications: list[Notification] = field(default_factory=list)

    def notify(
        self,
        kind: NotificationKind,
        title: str,
        message: str,
        actions: Sequence[NotificationAction] = (),
    ) -> None:
        self.notifications.append(Notification(kind, title, message, tuple(actions)))

    def titles(self) -> list[str]:
        return [notification.title for notification in self.notifications]

    def of_kind(self, kind: NotificationKind) -> list[Notification]:
        return [n for n in self.notifications if n.kind == kind]
