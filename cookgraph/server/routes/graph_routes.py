"""
Graph REST routes.

All routes are mounted under /api by main.py. Every mutation goes through the
editor's command stack, so anything done here can be undone via
POST /history/undo.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from cookgraph.core.Errors import InvalidStateError
from cookgraph.core.Node import Node
from cookgraph.server.serializers.graph_serializer import (
    serialize_cook,
    serialize_history,
    serialize_link,
    serialize_network,
    serialize_node,
)
from cookgraph.server.state import editor_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_http(exc: Exception) -> HTTPException:
    """Map engine errors onto HTTP status codes."""
    if isinstance(exc, KeyError):
        return HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ── GET /nodes ────────────────────────────────────────────────────────────────

@router.get("/nodes")
async def get_network() -> Dict[str, Any]:
    return serialize_network(editor_state.network, editor_state.positions)


# ── GET /node-types ───────────────────────────────────────────────────────────

@router.get("/node-types")
async def get_node_types() -> List[str]:
    return Node.registered_types()


# ── POST /nodes ───────────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    name: str
    settings: Optional[Dict[str, Any]] = None
    position: Optional[Dict[str, float]] = None


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node = editor_state.create_node(body.type, body.name, body.settings)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    if body.position:
        editor_state.set_position(node.id, body.position["x"], body.position["y"])
    return serialize_node(node, editor_state.positions)


# ── DELETE /nodes/:nodeId ─────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    try:
        editor_state.delete_node(node_id)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return Response(status_code=204)


# ── POST /links ───────────────────────────────────────────────────────────────

class LinkBody(BaseModel):
    sourceNodeId: str
    sourcePort: str
    targetNodeId: str
    targetPort: str


@router.post("/links", status_code=201)
async def add_link(body: LinkBody) -> Dict[str, Any]:
    try:
        link = editor_state.add_link(body.sourceNodeId, body.sourcePort, body.targetNodeId, body.targetPort)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return serialize_link(link)


# ── DELETE /links/:linkId ─────────────────────────────────────────────────────

@router.delete("/links/{link_id}", status_code=204)
async def remove_link(link_id: str) -> Response:
    try:
        editor_state.remove_link(link_id)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/settings/:name ─────────────────────────────────────────

class SettingBody(BaseModel):
    value: Any


@router.put("/nodes/{node_id}/settings/{name}", status_code=204)
async def set_setting(node_id: str, name: str, body: SettingBody) -> Response:
    try:
        editor_state.set_setting(node_id, name, body.value)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/visible ────────────────────────────────────────────────

class FlagBody(BaseModel):
    value: bool


@router.put("/nodes/{node_id}/visible", status_code=204)
async def set_visible(node_id: str, body: FlagBody) -> Response:
    try:
        if body.value:
            editor_state.set_visible(node_id)
        elif editor_state.network.visible is editor_state.get_node(node_id):
            editor_state.set_visible(None)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/locked ─────────────────────────────────────────────────

@router.put("/nodes/{node_id}/locked", status_code=204)
async def set_locked(node_id: str, body: FlagBody) -> Response:
    try:
        editor_state.set_locked(node_id, body.value)
    except (ValueError, KeyError, InvalidStateError) as exc:
        raise _to_http(exc)
    return Response(status_code=204)


# ── History ───────────────────────────────────────────────────────────────────

@router.get("/history")
async def get_history() -> Dict[str, Any]:
    return serialize_history(editor_state.stack)


@router.post("/history/undo")
async def undo() -> Dict[str, Any]:
    if not editor_state.network.undo():
        raise HTTPException(status_code=409, detail="Nothing to undo")
    return serialize_history(editor_state.stack)


@router.post("/history/redo")
async def redo() -> Dict[str, Any]:
    if not editor_state.network.redo():
        raise HTTPException(status_code=409, detail="Nothing to redo")
    return serialize_history(editor_state.stack)


# ── POST /cook ────────────────────────────────────────────────────────────────

@router.post("/cook")
async def cook() -> Dict[str, Any]:
    """Cook the visible node now, and report what was recomputed."""
    network = editor_state.network
    if network.visible is None:
        raise HTTPException(status_code=409, detail="No visible node")
    try:
        info = await network.cook_visible()
    except Exception as exc:
        logger.exception("cook failed")
        raise HTTPException(status_code=500, detail=str(exc))
    return serialize_cook(info)
