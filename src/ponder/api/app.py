"""
HTTP API for Ponder.

Each session owns its own conversation memory; every ``/agent`` call is one orchestrator run over
that memory.  It exposes the following endpoints:
- **GET /health**  - liveness probe for health checks.
- **POST /sessions** - create a new session, returns a session ID.
- **GET /sessions** - list all active sessions.
- **GET /sessions/{id}/history** - conversation history of a session.
- **DELETE /sessions/{id}/history** - clear a session's history.
- **POST /agent**   - multi-turn interaction: {"message": "...", "session_id": "..."}
"""

import logging
from functools import lru_cache
from typing import List

from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
)

from ponder.agent.gateway import (
    ModelGateway,
    load_gateway,
)
from ponder.agent.orchestrator import Orchestrator
from ponder.api.models import (
    HistoryResponse,
    MessageRequest,
    MessageResponse,
    SessionResponse,
)
from ponder.config import settings
from ponder.core.schema import (
    ErrorKind,
    RunErr,
)
from ponder.memory.memory_store import SessionRegistry
from ponder.tools import ToolRegistry
from ponder.tools.builtin import default_registry

logger = logging.getLogger(__name__)

sessions = SessionRegistry()

app = FastAPI(title="Ponder API", version="0.1.0", description="ReAct agent engine API")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_gateway() -> ModelGateway:
    """Gateway selected by ``settings.GATEWAY``."""
    return load_gateway()


@lru_cache(maxsize=1)
def get_tools() -> ToolRegistry:
    """Built-in tool registry, shared by every run."""
    return default_registry()


def get_sessions() -> SessionRegistry:
    return sessions


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health", summary="Health check")
async def health() -> dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@app.post("/sessions", response_model=SessionResponse, summary="Create a new session")
async def create_session(store: SessionRegistry = Depends(get_sessions)) -> SessionResponse:
    """Create a new conversation session."""
    return SessionResponse(session_id=store.create())


@app.get("/sessions", response_model=List[str], summary="List active sessions")
async def list_sessions(store: SessionRegistry = Depends(get_sessions)) -> List[str]:
    """List all active session IDs."""
    return store.ids()


@app.get("/sessions/{session_id}/history", response_model=HistoryResponse)
async def session_history(
    session_id: str, store: SessionRegistry = Depends(get_sessions)
) -> HistoryResponse:
    """Return the conversation history of a session."""
    try:
        memory = store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'") from exc
    return HistoryResponse(session_id=session_id, messages=list(await memory.history()))


@app.delete("/sessions/{session_id}/history", status_code=204)
async def clear_history(session_id: str, store: SessionRegistry = Depends(get_sessions)) -> None:
    """Forget the conversation history of a session."""
    try:
        memory = store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'") from exc
    await memory.clear()


@app.post("/agent", response_model=MessageResponse, summary="Process a message")
async def agent_endpoint(
    req: MessageRequest,
    gateway: ModelGateway = Depends(get_gateway),
    tools: ToolRegistry = Depends(get_tools),
    store: SessionRegistry = Depends(get_sessions),
) -> MessageResponse:
    """Run the agent on a user message within a session."""
    session_id, memory = store.get_or_create(req.session_id)
    orchestrator = Orchestrator(
        gateway,
        tools,
        memory,
        max_iterations=settings.MAX_ITERATIONS,
        max_consecutive_parse_failures=settings.MAX_CONSECUTIVE_PARSE_FAILURES,
    )

    result = await orchestrator.run(req.message)
    if isinstance(result, RunErr):
        logger.warning(
            "Run failed for session %s: %s (%s)", session_id, result.kind.value, result.detail
        )
        status = 502 if result.kind is ErrorKind.GATEWAY_FAILURE else 422
        raise HTTPException(
            status_code=status, detail={"kind": result.kind.value, "message": result.detail}
        )

    return MessageResponse(
        reply=result.answer,
        session_id=session_id,
        iterations=result.iterations,
        trace=list(result.trace),
    )


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload (useful in dev docker-compose).
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting Ponder API at %s:%d (reload=%s, log_level=%s, gateway=%s)",
        host,
        port,
        reload,
        log_level,
        settings.GATEWAY,
    )
    uvicorn.run(
        "ponder.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m ponder.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
