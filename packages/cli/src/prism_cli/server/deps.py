"""FastAPI dependencies for prism.

Route handlers reach the runtime's components through app state via
Depends(), so tests can build an app around any runtime.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from prism_core.mcp.adapter import McpAdapter
from prism_core.orchestrator import ReviewOrchestrator


def get_orchestrator(request: Request) -> ReviewOrchestrator:
    """Get the ReviewOrchestrator from app state."""
    return request.app.state.runtime.orchestrator


def get_adapter(request: Request) -> McpAdapter:
    """Get the McpAdapter from app state."""
    return request.app.state.runtime.adapter


def get_session_id(x_session_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Session id from the ``X-Session-Id`` header; empty counts as absent."""
    return x_session_id or None
