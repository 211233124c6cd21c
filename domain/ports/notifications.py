from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

NotificationKind = Literal["success", "error", "warning", "info"]


@dataclass(frozen=True)
class NotificationAction:
    label: str
    action: Callable[[], object]
    variant: str = "secondary"


class NotificationSink(Protocol):
    def notify(
        self,
        kind: NotificationKind,
        title: str,
        message: str,
        actions: Sequence[NotificationAction] = (),
    ) -> None: ...
