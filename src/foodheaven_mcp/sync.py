"""At-most-once, best-effort remote writes with an observable outcome."""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from foodheaven_mcp.errors import FoodHeavenError
from foodheaven_mcp.notify import Notifier

logger = logging.getLogger(__name__)

HISTORY_SIZE = 100


@dataclass
class WriteOutcome:
    description: str
    ok: bool
    error: Optional[str] = None


OutcomeListener = Callable[[WriteOutcome], None]


class BestEffortWriter:
    """Runs remote writes as tasks on the running loop without awaiting them.

    Each write is attempted once. The caller gets the task back; the outcome
    is also recorded in ``history`` and sent to listeners. A failure is
    logged and turned into an error notification, never raised to the caller.
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.history: deque[WriteOutcome] = deque(maxlen=HISTORY_SIZE)
        self._listeners: list[OutcomeListener] = []
        self._pending: set[asyncio.Task] = set()

    def add_listener(self, listener: OutcomeListener) -> None:
        self._listeners.append(listener)

    def issue(
        self,
        description: str,
        write: Callable[[], Awaitable[None]],
        failure_message: str,
    ) -> "asyncio.Task[WriteOutcome]":
        task = asyncio.get_running_loop().create_task(
            self._run(description, write, failure_message)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, description, write, failure_message) -> WriteOutcome:
        try:
            await write()
            outcome = WriteOutcome(description, ok=True)
        except FoodHeavenError as e:
            logger.warning(f"Best-effort write '{description}' failed: {e}")
            self.notifier.push(failure_message, "error")
            outcome = WriteOutcome(description, ok=False, error=str(e))
        except Exception as e:
            logger.exception(f"Best-effort write '{description}' failed unexpectedly")
            self.notifier.push(failure_message, "error")
            outcome = WriteOutcome(description, ok=False, error=str(e))
        self.history.append(outcome)
        for listener in list(self._listeners):
            listener(outcome)
        return outcome

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> list[WriteOutcome]:
        """Wait for every write still in flight."""
        if not self._pending:
            return []
        results = await asyncio.gather(*self._pending, return_exceptions=True)
        return [r for r in results if isinstance(r, WriteOutcome)]
