"""Direct review API routes.

Session scoping comes from the optional ``X-Session-Id`` header: without it,
analyses are stored unscoped, history spans every session and clearing is a
no-op.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from prism_cli.server.deps import get_orchestrator, get_session_id
from prism_core.models import AnalysisRequest
from prism_core.orchestrator import ReviewOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/review", tags=["review"])


# ── Request models ───────────────────────────────────────────────────────

class AnalyzeBody(BaseModel):
    code: str
    focus: str
    language: Optional[str] = None
    model: Optional[str] = None


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("/models")
def list_models(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)) -> list[str]:
    return orchestrator.get_models()


@router.post("/analyze", status_code=201)
def analyze(
    body: AnalyzeBody,
    session_id: Optional[str] = Depends(get_session_id),
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> dict:
    # Focus and non-empty code are checked by AnalysisRequest (400, not 422).
    request = AnalysisRequest(code=body.code, focus=body.focus, language=body.language, model=body.model)
    return orchestrator.analyze(request, session_id).to_dict()


@router.get("/history")
def get_history(
    limit: Optional[int] = Query(default=None, ge=1),
    session_id: Optional[str] = Depends(get_session_id),
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> list[dict]:
    return [entry.to_dict() for entry in orchestrator.get_history(session_id, limit=limit)]


@router.delete("/history")
def clear_history(
    session_id: Optional[str] = Depends(get_session_id),
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> dict:
    deleted = orchestrator.clear_history(session_id)
    return {"deleted": deleted}
