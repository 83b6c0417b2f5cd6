import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional
from logging import getLogger

from .Node import Node
from .Lock import Lock

logger = getLogger(__name__)


class Mark(Enum):
    TEMP = auto()   # on the current DFS path
    PERM = auto()   # fully processed


@dataclass
class SubGraph:
    graph: List[Node]
    acyclic: bool


@dataclass
class CookInfo:
    # milliseconds spent in each node that actually cooked, in cook order
    time: List[float] = field(default_factory=list)
    # True iff the target node itself needed no work
    clean: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {"time": list(self.time), "clean": self.clean}


class NodeCooker:
    """
    Recooks the part of the graph a target node depends on, in topological
    order, skipping clean and locked nodes.

    One cook chain runs at a time system-wide: the chain holds a key on the
    shared Lock from start to settle, and cook() returns None straight away
    while the lock is engaged.
    """
    def __init__(self, lock: Optional[Lock] = None):
        self._lock = lock
        self._in_flight: Optional[asyncio.Future] = None

    @property
    def lock(self) -> Optional[Lock]:
        return self._lock

    @property
    def in_flight(self) -> Optional[asyncio.Future]:
        """Resolves when the running cook chain settles; None when idle."""
        return self._in_flight

    def get_sub_graph(self, start: Node) -> SubGraph:
        """
        Depth-first walk of `start`'s dependencies with three-colour cycle
        detection. On success `graph` is topologically sorted (dependencies
        first, `start` last). On a cycle `graph` holds the nodes on the path
        that closed it.

        Locked nodes are opaque leaves: their dependencies are not visited.
        The walk keeps its own stack, so chain length is not bounded by the
        interpreter's recursion limit.
        """
        marks: Dict[str, Mark] = {}
        order: List[Node] = []
        path: List[Node] = []
        pending: List[Iterator[Node]] = []

        def enter(node: Node):
            marks[node.id] = Mark.TEMP
            path.append(node)
            pending.append(iter([] if node.locked else node.dependencies))

        enter(start)
        while pending:
            dependency = next(pending[-1], None)
            if dependency is None:
                pending.pop()
                node = path.pop()
                marks[node.id] = Mark.PERM
                order.append(node)
                continue

            mark = marks.get(dependency.id)
            if mark is Mark.PERM:
                continue
            if mark is Mark.TEMP:
                path.append(dependency)
                return SubGraph(path, False)
            enter(dependency)

        return SubGraph(order, True)

    async def cook(self, node: Node) -> Optional[CookInfo]:
        if self._lock is not None and self._lock.locked:
            logger.debug("cook(%s) skipped, lock is engaged", node.name)
            return None

        sub_graph = self.get_sub_graph(node)
        if not sub_graph.acyclic:
            logger.warning("graph is cyclic: %s", " -> ".join(n.name for n in sub_graph.graph))
            return None

        key = self._lock.lock() if self._lock is not None else None
        settled = self._in_flight = asyncio.get_running_loop().create_future()
        try:
            return await self._run_chain(sub_graph.graph)
        finally:
            if key is not None:
                self._lock.free(key)
            self._in_flight = None
            settled.set_result(None)

    async def _run_chain(self, graph: List[Node]) -> CookInfo:
        info = CookInfo()
        last = len(graph) - 1

        for i, node in enumerate(graph):
            if not node.locked and node.dirty:
                start = time.perf_counter()
                try:
                    await node.cook()
                except Exception:
                    logger.error("cooking node '%s' failed, chain aborted", node.name)
                    raise
                elapsed = (time.perf_counter() - start) * 1000.0
                info.time.append(elapsed)
                logger.debug("cooked %s in %.3f ms", node.name, elapsed)
            elif i == last:
                info.clean = True

        return info
