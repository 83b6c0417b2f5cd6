"""
EditorState: the single editing session served by the API.

Builds a small demo network on startup so a client has something to
display on first load.

Import this module as a side-effect to also register demo node types via
node_definitions.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

# Side-effect: registers all demo node types in Node._node_registry
import cookgraph.server.node_definitions  # noqa: F401

from cookgraph.core.Command import CommandStack
from cookgraph.core.GraphPrimitives import Link
from cookgraph.core.Node import Node
from cookgraph.core.NodeNetwork import NodeNetwork

logger = logging.getLogger(__name__)


class EditorState:
    """Holds the network, its command history and UI layout positions."""

    def __init__(self, history_limit: Optional[int] = None, seed_demo: bool = True) -> None:
        self.stack = CommandStack(limit=history_limit)
        self.network = NodeNetwork("root", stack=self.stack)
        # UI layout positions: node_id → {x, y}
        self.positions: Dict[str, Dict[str, float]] = {}

        if seed_demo:
            self._seed_demo()

    # ── Demo graph ──────────────────────────────────────────────────────────

    def _seed_demo(self) -> None:
        net = self.network

        a = net.createNode("ConstA", "ConstantNode", value=8)
        b = net.createNode("ConstB", "ConstantNode", value=4)
        add = net.createNode("Add", "AddNode")
        inc = net.createNode("Increment", "IncrementNode")

        net.connectNodes(a, "out", add, "a")
        net.connectNodes(b, "out", add, "b")

        self.positions[a.id] = {"x": 80, "y": 100}
        self.positions[b.id] = {"x": 80, "y": 260}
        self.positions[add.id] = {"x": 340, "y": 180}
        self.positions[inc.id] = {"x": 580, "y": 180}

        net.set_visible(add)

        # the demo is the starting point, not something to undo
        self.stack.clear()

    # ── Lookups ─────────────────────────────────────────────────────────────

    def get_node(self, node_id: str) -> Node:
        node = self.network.get_node(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found")
        return node

    def get_link(self, link_id: str) -> Link:
        link = self.network.graph.get_link_by_id(link_id)
        if link is None:
            raise KeyError(f"Link '{link_id}' not found")
        return link

    # ── Mutations (all routed through the command stack) ───────────────────

    def create_node(self, type_name: str, name: str, settings: Optional[Dict[str, Any]] = None) -> Node:
        node = self.network.createNode(name, type_name)
        for key, value in (settings or {}).items():
            self.network.setSetting(node, key, value)
        return node

    def delete_node(self, node_id: str) -> None:
        # the position stays so undo brings the node back where it was
        self.network.deleteNodes([self.get_node(node_id)])

    def add_link(self, source_id: str, source_port: str, target_id: str, target_port: str) -> Link:
        return self.network.connectNodes(self.get_node(source_id), source_port,
                                         self.get_node(target_id), target_port)

    def remove_link(self, link_id: str) -> None:
        self.network.disconnect(self.get_link(link_id))

    def set_setting(self, node_id: str, name: str, value: Any) -> None:
        self.network.setSetting(self.get_node(node_id), name, value)

    def set_visible(self, node_id: Optional[str]) -> None:
        self.network.set_visible(self.get_node(node_id) if node_id else None)

    def set_locked(self, node_id: str, locked: bool) -> None:
        self.network.setLocked(self.get_node(node_id), locked)

    def set_position(self, node_id: str, x: float, y: float) -> None:
        self.positions[node_id] = {"x": x, "y": y}


# Module-level singleton, imported by routes
editor_state = EditorState()
