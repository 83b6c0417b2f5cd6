"""
Graph serializer.

Converts Node / NodePort / Link / CommandStack objects into JSON-safe dicts
for the REST and Socket.IO layers.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from cookgraph.core.Command import CommandStack
from cookgraph.core.GraphPrimitives import Link
from cookgraph.core.Node import Node
from cookgraph.core.NodeCooker import CookInfo
from cookgraph.core.NodeNetwork import NodeNetwork
from cookgraph.core.NodePort import NodePort


# ── Helpers ───────────────────────────────────────────────────────────────────

def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return repr(value)


def _serialize_port(port: NodePort) -> Dict[str, Any]:
    result = {
        "name": port.port_name,
        "direction": port.direction.name,
        "valueType": port.data_type.value,
        "multi": port.isMulti(),
        "connected": bool(port.links),
    }
    if port.isOutputPort():
        result["value"] = _jsonable(port.value)
    return result


# ── Public API ────────────────────────────────────────────────────────────────

def serialize_node(node: Node, positions: Optional[Dict[str, Dict[str, float]]] = None) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "dirty": node.dirty,
        "locked": node.locked,
        "visible": node.visible,
        "selected": node.selected,
        "settings": _jsonable(dict(node.settings)),
        "inputs": [_serialize_port(p) for p in node.inputs.values()],
        "outputs": [_serialize_port(p) for p in node.outputs.values()],
        "position": (positions or {}).get(node.id),
    }


def serialize_link(link: Link) -> Dict[str, Any]:
    return {
        "id": link.id,
        "sourceNodeId": link.output.node.id,
        "sourcePort": link.output.port_name,
        "targetNodeId": link.input.node.id,
        "targetPort": link.input.port_name,
    }


def serialize_network(network: NodeNetwork, positions: Optional[Dict[str, Dict[str, float]]] = None) -> Dict[str, Any]:
    visible = network.visible
    return {
        "name": network.name,
        "visibleNodeId": visible.id if visible is not None else None,
        "nodes": [serialize_node(n, positions) for n in network.nodes],
        "links": [serialize_link(l) for l in network.links],
    }


def serialize_history(stack: CommandStack) -> Dict[str, Any]:
    return {
        "index": stack.index,
        "size": len(stack),
        "canUndo": bool(stack.can_undo),
        "canRedo": bool(stack.can_redo),
        "locked": stack.locked,
        "commands": [repr(c) for c in stack.commands],
    }


def serialize_cook(info: Optional[CookInfo]) -> Dict[str, Any]:
    if info is None:
        return {"cooked": False}
    result: Dict[str, Any] = {"cooked": True}
    result.update(info.to_dict())
    return result
