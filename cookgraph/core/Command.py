from typing import Optional, List, Sequence, Callable, Dict, Tuple
import logging
from contextlib import contextmanager

from .Types import CommandType
from .Lock import Lock
from .Event import Event
from .Errors import InvalidStateError, StackLockedError
from .Interface import ICommand

logger = logging.getLogger(__name__)


class Command(ICommand):
    """
    A unit of reversible mutation.

    Lifecycle: created detached -> attached once to a CommandStack ->
    executed (once for IMMEDIATE, any number of times for CONTINUOUS) ->
    closed -> undone / redone alternately.

    While the owning stack's Lock is engaged every lifecycle call is a silent
    no-op: the lock means "busy", not "error".
    """
    IMMEDIATE = CommandType.IMMEDIATE
    CONTINUOUS = CommandType.CONTINUOUS

    def __init__(self, type: CommandType):
        if not isinstance(type, CommandType):
            raise ValueError(f"Invalid command type '{type}'")

        self._type = type
        self._stack: Optional['CommandStack'] = None
        self._open = True
        self._done = False
        self._busy = False

        self.on_done = Event("done")
        self.on_undo = Event("undo")
        self.on_redo = Event("redo")

    @property
    def type(self) -> CommandType:
        return self._type

    @property
    def open(self) -> bool:
        return self._open

    @property
    def done(self) -> bool:
        return self._done

    @property
    def stack(self) -> Optional['CommandStack']:
        return self._stack

    @stack.setter
    def stack(self, val: 'CommandStack'):
        if not isinstance(val, CommandStack):
            raise ValueError(f"Expected a CommandStack, got '{type(val).__name__}'")
        if self._stack is not None:
            raise InvalidStateError("Command is already attached to a CommandStack")
        self._stack = val

    @property
    def locked(self) -> bool:
        return self._stack is not None and self._stack.lock.locked

    @property
    def can_undo(self) -> bool:
        return not self.locked and not self._open and self._done

    @property
    def can_redo(self) -> bool:
        return not self.locked and not self._open and not self._done

    @contextmanager
    def _operation(self, name: str):
        if self._busy:
            raise InvalidStateError(f"Invalid state. {name}() called while {type(self).__name__} is mid-operation.")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def execute(self, *args, **kwargs) -> None:
        if self.locked:
            logger.debug("%s.execute skipped, stack is locked", type(self).__name__)
            return
        if not self._open:
            raise InvalidStateError("Invalid state. Command is closed.")

        with self._operation("execute"):
            self._execute(*args, **kwargs)

        if self._type == CommandType.IMMEDIATE:
            self._open = False
            self._done = True
            self.on_done.trigger(self)

    def close(self) -> None:
        if self.locked:
            logger.debug("%s.close skipped, stack is locked", type(self).__name__)
            return
        if self._type == CommandType.IMMEDIATE:
            raise InvalidStateError("Cannot call close on an immediate Command")
        if not self._open:
            raise InvalidStateError("Invalid state. Command is closed.")

        with self._operation("close"):
            self._close()

        self._open = False
        self._done = True
        self.on_done.trigger(self)

    def undo(self) -> None:
        if self.locked:
            logger.debug("%s.undo skipped, stack is locked", type(self).__name__)
            return
        if self._open:
            raise InvalidStateError("Invalid state. Command is open.")
        if not self._done:
            raise InvalidStateError("Invalid state. Command is not done.")

        with self._operation("undo"):
            self._undo()

        self._done = False
        self.on_undo.trigger(self)

    def redo(self) -> None:
        if self.locked:
            logger.debug("%s.redo skipped, stack is locked", type(self).__name__)
            return
        if self._open:
            raise InvalidStateError("Invalid state. Command is open.")
        if self._done:
            raise InvalidStateError("Invalid state. Command is done.")

        with self._operation("redo"):
            self._redo()

        self._done = True
        self.on_redo.trigger(self)

    def __repr__(self):
        state = "open" if self._open else ("done" if self._done else "undone")
        return f"{type(self).__name__}({self._type.name}, {state})"


class MultiCommand(Command):
    """
    Composite of an ordered sequence of Commands. It is IMMEDIATE only when
    every child is; lifecycle calls are delegated to the children, skipping
    children that are already closed.
    """
    def __init__(self, commands: Sequence[Command]):
        commands = list(commands) if commands is not None else []
        if not commands or not all(isinstance(c, Command) for c in commands):
            raise ValueError("MultiCommand needs a non-empty sequence of Commands")

        all_immediate = all(c.type == CommandType.IMMEDIATE for c in commands)
        super().__init__(CommandType.IMMEDIATE if all_immediate else CommandType.CONTINUOUS)

        self._commands: List[Command] = commands

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._commands)

    @property
    def can_undo(self) -> bool:
        return not self.locked and not self._open and all(not c.open and c.done for c in self._commands)

    @property
    def can_redo(self) -> bool:
        return not self.locked and not self._open and all(not c.open and not c.done for c in self._commands)

    def _execute(self, *args, **kwargs):
        for c in self._commands:
            if c.open:
                c.execute(*args, **kwargs)

    def _close(self):
        for c in self._commands:
            if c.open:
                c.close()

    def _undo(self):
        # reverse order so e.g. "remove old link, add new link" inverts cleanly
        for c in reversed(self._commands):
            c.undo()

    def _redo(self):
        for c in self._commands:
            c.redo()


class CommandStack:
    """
    Linear, bounded undo/redo history.

    `index` points at the most recent done command (-1 when nothing is done).
    Pushing while not at the tail discards every command after `index`.
    At most one command is open at a time and it is always the newest one.
    """
    def __init__(self, limit: Optional[int] = None, lock: Optional[Lock] = None):
        if limit is None:
            from ..config import settings
            limit = settings.history_limit
        if limit < 0:
            raise ValueError(f"History limit must be >= 0, got {limit}")

        # 0 means unbounded
        self._limit = limit
        self._stack: List[Command] = []
        self._current_index = -1
        self._unsubscribe: Dict[int, List[Callable[[], None]]] = {}

        self.on_change = Event("change")
        self.lock = lock if lock is not None else Lock("stack")

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def index(self) -> int:
        return self._current_index

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def locked(self) -> bool:
        return self.lock.locked

    @property
    def current(self) -> Optional[Command]:
        if 0 <= self._current_index < len(self._stack):
            return self._stack[self._current_index]
        return None

    @property
    def next(self) -> Optional[Command]:
        i = self._current_index + 1
        if 0 <= i < len(self._stack):
            return self._stack[i]
        return None

    @property
    def can_undo(self) -> bool:
        c = self.current
        return not self.lock.locked and c is not None and c.can_undo

    @property
    def can_redo(self) -> bool:
        n = self.next
        c = self.current
        return (not self.lock.locked and n is not None and n.can_redo
                and not (c is not None and c.open))

    def add(self, command: Command) -> None:
        if not isinstance(command, Command):
            raise ValueError(f"Expected a Command, got '{type(command).__name__}'")
        if self.lock.locked:
            raise StackLockedError("Cannot add a Command while the CommandStack is locked")

        current = self.current
        if current is not None and current.open:
            raise InvalidStateError("Invalid state. The current Command is open.")

        command.stack = self

        # branch discard: everything after the current index is dropped
        for discarded in self._stack[self._current_index + 1:]:
            self._detach(discarded)
        del self._stack[self._current_index + 1:]

        self._stack.append(command)
        self._current_index += 1

        if self._limit and len(self._stack) > self._limit:
            evicted = self._stack.pop(0)
            self._detach(evicted)
            self._current_index -= 1
            logger.debug("history full (%d), evicted %r", self._limit, evicted)

        self._unsubscribe[id(command)] = [
            command.on_done.add_listener(self._on_done),
            command.on_undo.add_listener(self._on_undo),
            command.on_redo.add_listener(self._on_redo),
        ]

    def discard(self, command: Command) -> None:
        """Drop `command` from the top of the history while it is still open, e.g. after its first execute() failed."""
        if command is not self.current or not command.open:
            raise InvalidStateError(f"Can only discard the open Command on top of the history, not {command!r}")

        self._detach(command)
        self._stack.pop()
        self._current_index -= 1
        logger.debug("discarded %r", command)

    def _detach(self, command: Command) -> None:
        for remove in self._unsubscribe.pop(id(command), []):
            remove()

    def _on_done(self, command: Command) -> None:
        self.on_change.trigger(self)

    def _on_undo(self, command: Command) -> None:
        self._current_index -= 1
        self.on_change.trigger(self)

    def _on_redo(self, command: Command) -> None:
        self._current_index += 1
        self.on_change.trigger(self)

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self.current.undo()
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self.next.redo()
        return True

    def clear(self) -> None:
        current = self.current
        if current is not None and current.open:
            raise InvalidStateError("Invalid state. The current Command is open.")

        for command in self._stack:
            self._detach(command)
        self._stack.clear()
        self._current_index = -1
        self.on_change.trigger(self)

    def __repr__(self):
        return f"CommandStack(index={self._current_index}, size={len(self._stack)}, limit={self._limit})"
