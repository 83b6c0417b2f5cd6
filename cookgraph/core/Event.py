import asyncio
import inspect
import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class Event:
    """
    Listener fan-out. Listeners run synchronously, in registration order,
    inside trigger(); an exception raised by a listener propagates to the
    caller of trigger().
    """
    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: List[Callable[..., Any]] = []

    def add_listener(self, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register `callback`. Returns a function that removes it again."""
        self._listeners.append(callback)

        def remove():
            self.remove_listener(callback)
        return remove

    def remove_listener(self, callback: Callable[..., Any]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def link_to(self, other: 'Event') -> Callable[[], None]:
        """Re-fire this event whenever `other` fires."""
        return other.add_listener(self.trigger)

    def trigger(self, *args, **kwargs) -> None:
        # copy so listeners may unsubscribe while we iterate
        for callback in list(self._listeners):
            callback(*args, **kwargs)

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self):
        return f"Event({self.name}, listeners={len(self._listeners)})"


class CoalescedCall:
    """
    Collapses any number of update() requests made within one event loop turn
    into a single deferred invocation of `function`.

    If `function` returns a coroutine it is wrapped in a task, exposed as
    `task` so callers can await the outcome.

    Outside a running loop the request stays pending until flush() is awaited.
    """
    def __init__(self, function: Callable[[], Any]):
        self._function = function
        self._pending = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.Handle] = None
        self.task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._pending

    def update(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        # already queued on this loop, or nowhere to queue it yet
        if self._pending and (loop is None or loop is self._loop):
            return
        self._pending = True

        if loop is None:
            logger.debug("no running event loop, update of %s deferred until flush()", self._function)
            return

        if self._handle is not None:
            self._handle.cancel()
        self._loop = loop
        self._handle = loop.call_soon(self._run)

    def _run(self) -> None:
        self._handle = None
        if not self._pending:
            return
        self._pending = False
        result = self._function()
        if inspect.isawaitable(result):
            self.task = asyncio.ensure_future(result)
            self.task.add_done_callback(self._report)

    def _report(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("deferred call %s failed: %s", self._function, exc, exc_info=exc)

    async def flush(self) -> Any:
        """Run a pending request now and wait for it to settle."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        if self._pending:
            self._pending = False
            result = self._function()
            if inspect.isawaitable(result):
                return await result
            return result

        if self.task is not None and not self.task.done():
            return await self.task
        return None
