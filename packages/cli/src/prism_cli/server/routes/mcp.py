"""MCP routes: discovery, tools, resources and prompts over JSON POSTs."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from prism_cli.server.deps import get_adapter
from prism_core.mcp.adapter import McpAdapter

router = APIRouter(prefix="/mcp", tags=["mcp"])


# ── Request models ───────────────────────────────────────────────────────

class ToolCallBody(BaseModel):
    name: str
    arguments: Optional[dict[str, Any]] = None


class ResourcesListBody(BaseModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ResourceReadBody(BaseModel):
    uri: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class PromptGetBody(BaseModel):
    name: str
    arguments: Optional[dict[str, Any]] = None


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("/discovery")
def discovery(adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.manifest()


@router.post("/tools/list")
def list_tools(adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.list_tools()


@router.post("/tools/call")
def call_tool(body: ToolCallBody, adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.call_tool(body.name, body.arguments)


@router.post("/resources/list")
def list_resources(body: Optional[ResourcesListBody] = None, adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.list_resources(body.session_id if body else None)


@router.post("/resources/read")
def read_resource(body: ResourceReadBody, adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.read_resource(body.uri, body.session_id)


@router.post("/prompts/list")
def list_prompts(adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.list_prompts()


@router.post("/prompts/get")
def get_prompt(body: PromptGetBody, adapter: McpAdapter = Depends(get_adapter)) -> dict:
    return adapter.get_prompt(body.name, body.arguments)
