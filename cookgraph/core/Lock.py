import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

from .Errors import InvalidStateError

logger = logging.getLogger(__name__)


class Lock:
    """
    Counting mutual-exclusion gate.

    Every lock() issues a fresh key; the Lock reads as `locked` for as long as
    at least one key is outstanding. Locks piped into this one are locked and
    freed along with it.
    """
    def __init__(self, name: str = "lock"):
        self.name = name
        self._key_count = 0
        # key -> [(sub-lock, sub-key), ...]
        self._keys: Dict[int, List[Tuple['Lock', int]]] = {}
        self._locks: List['Lock'] = []

    @property
    def locked(self) -> bool:
        return bool(self._keys)

    def lock(self) -> int:
        key = self._key_count
        self._key_count += 1

        subkeys = [(sub_lock, sub_lock.lock()) for sub_lock in self._locks]
        self._keys[key] = subkeys

        logger.debug("%s: issued key %d (%d outstanding)", self.name, key, len(self._keys))
        return key

    def free(self, key: int) -> None:
        if key not in self._keys:
            raise InvalidStateError(f"Lock '{self.name}' has no outstanding key {key!r}")

        subkeys = self._keys.pop(key)
        for sub_lock, sub_key in subkeys:
            sub_lock.free(sub_key)

        logger.debug("%s: freed key %d (%d outstanding)", self.name, key, len(self._keys))

    def pipe(self, lock: 'Lock') -> None:
        """Register `lock` as downstream: it is co-locked and co-freed with this one."""
        if lock is self:
            raise ValueError("Cannot pipe a Lock into itself")
        self._locks.append(lock)

    @contextmanager
    def held(self) -> Iterator[int]:
        key = self.lock()
        try:
            yield key
        finally:
            self.free(key)

    def __repr__(self):
        return f"Lock({self.name}, keys={list(self._keys)})"
