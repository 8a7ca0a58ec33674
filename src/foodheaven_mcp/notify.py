import logging
from collections import deque
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

NotificationKind = Literal["success", "error", "info"]

MAX_PENDING = 50


@dataclass
class Notification:
    message: str
    kind: NotificationKind = "success"


class Notifier:
    """Transient toasts. Tools drain them into their response payload."""

    def __init__(self):
        self._pending: deque[Notification] = deque(maxlen=MAX_PENDING)

    def push(self, message: str, kind: NotificationKind = "success") -> None:
        level = logging.WARNING if kind == "error" else logging.DEBUG
        logger.log(level, f"[{kind}] {message}")
        self._pending.append(Notification(message, kind))

    def drain(self) -> list[dict]:
        items = [{"message": n.message, "kind": n.kind} for n in self._pending]
        self._pending.clear()
        return items

    def peek(self) -> list[Notification]:
        return list(self._pending)
