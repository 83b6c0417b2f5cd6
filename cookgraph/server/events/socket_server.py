"""
Socket.IO server.

Pushes editor changes to connected clients. `create_socket_app(app)` wraps
the FastAPI app in the python-socketio ASGI app that uvicorn serves.

Clients receive:
  * "history": the undo/redo state, every time the command stack changes
  * "render": the id of the node to redraw after a cook (or None)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

import socketio

from cookgraph.core.Command import CommandStack
from cookgraph.core.Node import Node
from cookgraph.core.NodeNetwork import NodeNetwork
from cookgraph.server.serializers.graph_serializer import serialize_history

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Socket.IO instance (async, ASGI mode)
# ---------------------------------------------------------------------------

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


# emits in flight; the loop only keeps weak references to tasks
_pending_emits: Set[asyncio.Task] = set()


def _emit(event: str, payload: Dict[str, Any]) -> None:
    """Fire-and-forget emit from a synchronous Event listener."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("no running loop, '%s' notification not sent", event)
        return
    task = loop.create_task(sio.emit(event, payload))
    _pending_emits.add(task)
    task.add_done_callback(_pending_emits.discard)


# ---------------------------------------------------------------------------
# Fan-out: wire network / stack events → Socket.IO emit
# ---------------------------------------------------------------------------

def attach_network(network: NodeNetwork) -> None:
    def on_history(stack: CommandStack) -> None:
        _emit("history", serialize_history(stack))

    def on_render(node: Optional[Node]) -> None:
        _emit("render", {"nodeId": node.id if node is not None else None})

    network.stack.on_change.add_listener(on_history)
    network.on_render.add_listener(on_render)


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.info("client %s connected", sid)


@sio.event
async def disconnect(sid: str) -> None:
    logger.info("client %s disconnected", sid)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
