"""
nodeflow FastAPI + Socket.IO server.

Start with:
    python -m nodeflow.server.main

Or via uvicorn directly:
    uvicorn nodeflow.server.main:socket_app --port 3001 --reload
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nodeflow import __version__
from nodeflow.server.config import configure_logging, load_settings
from nodeflow.server.events.socket_server import attach_bus, create_socket_app
from nodeflow.server.routes.graph_routes import router
from nodeflow.server.state import graph_state

settings = load_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="nodeflow API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Graph state + event fan-out
# ---------------------------------------------------------------------------

graph_state.reset(seed_demo=settings.seed_demo)
subscriptions = attach_bus(graph_state.bus)

# socket_app is the top-level ASGI app passed to uvicorn.
# Socket.IO connections are handled at the root; all other requests are
# forwarded to the inner FastAPI app.
socket_app = create_socket_app(app)

logger.info(f"nodeflow {__version__} ready, graph '{graph_state.graph.id}'")

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "nodeflow.server.main:socket_app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )
