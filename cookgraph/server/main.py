"""
FastAPI + Socket.IO server exposing one editing session.

Start with:
    python -m cookgraph.server.main

Or via uvicorn directly:
    uvicorn cookgraph.server.main:socket_app --port 3001 --reload
"""
from __future__ import annotations

from dotenv import load_dotenv

# Load .env before cookgraph.config reads the environment, so local overrides
# such as COOKGRAPH_PORT work without a manual `export`.
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cookgraph import __version__
from cookgraph.config import settings, configure_logging
from cookgraph.server.routes.graph_routes import router
from cookgraph.server.state import editor_state
from cookgraph.server.events.socket_server import attach_network, create_socket_app

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="cookgraph API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Socket.IO push channel
# ---------------------------------------------------------------------------

attach_network(editor_state.network)

# Serve this one: Socket.IO traffic is answered here, everything else is
# handed to `app`.
socket_app = create_socket_app(app)

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(
        "cookgraph.server.main:socket_app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
