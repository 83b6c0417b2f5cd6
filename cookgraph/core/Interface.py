from __future__ import annotations
from typing import Any, Dict, List, Union, Awaitable

from abc import ABC, abstractmethod


# The operation sets below are closed: the engine only ever calls these.
# Concrete commands and node types plug in by implementing the underscore hooks.

class ICommand(ABC):
    @abstractmethod
    def execute(self, *args, **kwargs) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def undo(self) -> None:
        pass

    @abstractmethod
    def redo(self) -> None:
        pass

    @property
    @abstractmethod
    def can_undo(self) -> bool:
        pass

    @property
    @abstractmethod
    def can_redo(self) -> bool:
        pass

    # --- effect hooks supplied by concrete commands ---

    @abstractmethod
    def _execute(self, *args, **kwargs) -> None:
        pass

    def _close(self) -> None:
        pass

    @abstractmethod
    def _undo(self) -> None:
        pass

    @abstractmethod
    def _redo(self) -> None:
        pass


CookResult = Union[List[Any], tuple, Dict[str, Any]]


class INode(ABC):
    @abstractmethod
    def isDirty(self) -> bool:
        pass

    @abstractmethod
    def markDirty(self):
        pass

    @abstractmethod
    def markClean(self):
        pass

    @property
    @abstractmethod
    def dependencies(self) -> List['INode']:
        pass

    @abstractmethod
    async def cook(self) -> bool:
        pass

    # Supplied by concrete node types: input values in, output values out
    # (or an awaitable resolving to them).
    @abstractmethod
    def _cook(self, inputs: List[Any]) -> Union[CookResult, Awaitable[CookResult]]:
        pass
