"""
Cancellation gate for asynchronous narrative calls.

Narrative text is produced by slow external calls. Each request is keyed by
its origin (a screen, a character, a combat log); a new request from the
same origin cancels the one in flight, and a result that was superseded or
cancelled is discarded instead of being applied.
"""
import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from ...core.events import LogMessage

if TYPE_CHECKING:
    from ...core.event_manager import EventManager

T = TypeVar("T")


class NarrativeGate:
    """Tracks one in-flight task per origin."""

    def __init__(self, event_manager: Optional["EventManager"] = None):
        self.event_manager = event_manager
        self._tasks: dict[str, asyncio.Task] = {}
        self._generations: dict[str, int] = {}

    def _emit_log(self, message: str, category: str = "SYSTEM", level: str = "DEBUG") -> None:
        if self.event_manager is None:
            return
        self.event_manager.publish(
            LogMessage(turn=0, message=message, category=category, level=level, source="NarrativeGate"),
            source="NarrativeGate",
        )

    def _bump(self, origin: str) -> int:
        generation = self._generations.get(origin, 0) + 1
        self._generations[origin] = generation
        return generation

    async def request(
        self,
        origin: str,
        coroutine_factory: Callable[[], Awaitable[T]],
        apply: Callable[[T], None],
    ) -> bool:
        """Run a narrative call and apply its result if it is still current.

        Args:
            origin: Key identifying who asked; one call per origin is live
            coroutine_factory: Creates the awaitable doing the call
            apply: Receives the result when it was not superseded

        Returns:
            True if the result was applied, False if it was discarded

        Exceptions raised by the call itself propagate to the caller.
        """
        self.cancel(origin)
        generation = self._bump(origin)
        task = asyncio.ensure_future(coroutine_factory())
        self._tasks[origin] = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._tasks.get(origin) is task:
                del self._tasks[origin]

        if task.cancelled() or self._generations.get(origin) != generation:
            self._discard(origin, task)
            return False

        apply(task.result())
        return True

    def cancel(self, origin: str) -> bool:
        """Cancel the in-flight call for an origin.

        A call that already finished but has not been applied yet is
        discarded too.
        """
        task = self._tasks.pop(origin, None)
        if task is None:
            return False
        self._bump(origin)
        if task.done():
            self._discard(origin, task)
        else:
            task.cancel()
        self._emit_log(f"Cancelled narrative call for {origin}")
        return True

    def _discard(self, origin: str, task: asyncio.Task) -> None:
        """Drop a finished result, reading its exception so it is not reported as unretrieved."""
        error = None if task.cancelled() else task.exception()
        if error is not None:
            self._emit_log(f"Discarded failed stale narrative call for {origin}: {error!r}", level="WARNING")
        else:
            self._emit_log(f"Discarded stale narrative result for {origin}")

    def cancel_all(self) -> int:
        return sum(1 for origin in list(self._tasks) if self.cancel(origin))

    def in_flight(self, origin: str) -> bool:
        task = self._tasks.get(origin)
        return task is not None and not task.done()
