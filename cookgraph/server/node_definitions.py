"""
Demo node types used by the editor session and by the tests.

Importing the module registers them, so `Node.create_node(name, "AddNode")`
works. Registration is skipped for names that are already taken, which lets
the module be imported from several places.
"""
from __future__ import annotations

import asyncio
from typing import Any, List

from cookgraph.core.Node import Node
from cookgraph.core.Types import ValueType


# ---------------------------------------------------------------------------
# Registration helper, skips types that are already registered
# ---------------------------------------------------------------------------

def _safe_register(type_name: str):
    """Like Node.register, but a no-op when `type_name` is taken."""
    def decorator(cls):
        if type_name not in Node._node_registry:
            Node._node_registry[type_name] = cls
        return cls
    return decorator


# ── ConstantNode ─────────────────────────────────────────────────────────────

@_safe_register("ConstantNode")
class ConstantNode(Node):
    def __init__(self, name: str, type: str = "ConstantNode", value: Any = 0, **kwargs):
        super().__init__(name, type, settings={"value": value}, **kwargs)
        self.add_output("out", ValueType.ANY)

    def _cook(self, inputs: List[Any]):
        return [self.settings["value"]]


# ── AddNode ──────────────────────────────────────────────────────────────────

@_safe_register("AddNode")
class AddNode(Node):
    def __init__(self, name: str, type: str = "AddNode", **kwargs):
        super().__init__(name, type, **kwargs)
        self.add_input("a", ValueType.FLOAT)
        self.add_input("b", ValueType.FLOAT)
        self.add_output("sum", ValueType.FLOAT)

    def _cook(self, inputs: List[Any]):
        a, b = inputs
        return {"sum": (a or 0) + (b or 0)}


# ── IncrementNode ────────────────────────────────────────────────────────────

@_safe_register("IncrementNode")
class IncrementNode(Node):
    """Outputs its input plus one, or 1 when unconnected."""
    def __init__(self, name: str, type: str = "IncrementNode", **kwargs):
        super().__init__(name, type, **kwargs)
        self.add_input("in", ValueType.INT)
        self.add_output("out", ValueType.INT)

    def _cook(self, inputs: List[Any]):
        value = inputs[0]
        return [value + 1 if value is not None else 1]


# ── AsyncIncrementNode ───────────────────────────────────────────────────────

@_safe_register("AsyncIncrementNode")
class AsyncIncrementNode(Node):
    """Same as IncrementNode, but resolves after `delay` seconds."""
    def __init__(self, name: str, type: str = "AsyncIncrementNode", delay: float = 0.0, **kwargs):
        super().__init__(name, type, settings={"delay": delay}, **kwargs)
        self.add_input("in", ValueType.INT)
        self.add_output("out", ValueType.INT)

    async def _cook(self, inputs: List[Any]):
        await asyncio.sleep(self.settings["delay"])
        value = inputs[0]
        return [value + 1 if value is not None else 1]


# ── MergeNode ────────────────────────────────────────────────────────────────

@_safe_register("MergeNode")
class MergeNode(Node):
    """Collects its layers, bottom first, in link order."""
    def __init__(self, name: str, type: str = "MergeNode", **kwargs):
        super().__init__(name, type, **kwargs)
        self.add_multi_input("layers", ValueType.ANY)
        self.add_output("merged", ValueType.ARRAY)

    def _cook(self, inputs: List[Any]):
        layers = inputs[0]
        return [[layer for layer in layers if layer is not None]]
