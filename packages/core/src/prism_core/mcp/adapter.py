"""MCP (Model Context Protocol) adapter.

Exposes the review orchestrator to external agents as tools, ``prism://``
resources and prompt templates. The adapter is a thin transformation layer:
it validates protocol-level shape, delegates to the orchestrator, and wraps
results in MCP envelopes. It owns no state beyond the static catalogs.

Resource URIs:
    <scheme>://models
    <scheme>://history/<sessionId>   (segment wins over a sessionId parameter)
    <scheme>://review/<reviewId>     (looked up in the resolved session)
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Callable

from prism_core.errors import BadRequestError, NotFoundError, ValidationError
from prism_core.mcp.catalog import (
    PROMPTS,
    PROTOCOL_VERSION,
    SERVER_DESCRIPTION,
    SERVER_NAME,
    SERVER_VERSION,
    TOOLS,
    PromptName,
    ToolName,
    render_prompt,
)
from prism_core.models import AnalysisRequest, Focus

if TYPE_CHECKING:
    from prism_core.orchestrator import ReviewOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "mcp-session"
DEFAULT_SCHEME = "prism"
DEFAULT_HISTORY_LIMIT = 10
JSON_MIME = "application/json"

_TOOL_HANDLERS: dict[ToolName, str] = {
    ToolName.ANALYZE_CODE: "_analyze_code_tool",
    ToolName.GET_AVAILABLE_MODELS: "_get_models_tool",
    ToolName.GET_REVIEW_HISTORY: "_get_history_tool",
}

if set(_TOOL_HANDLERS) != set(ToolName):
    raise RuntimeError(f"MCP tools without a handler: {sorted(set(ToolName) - set(_TOOL_HANDLERS))}")


def _text_content(payload: Any) -> dict:
    return {"content": [{"type": "text", "text": json.dumps(payload, indent=2)}]}


def _optional_str(args: dict, key: str) -> str | None:
    value = args.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value


class McpAdapter:
    def __init__(
        self,
        orchestrator: ReviewOrchestrator,
        session_id: str = DEFAULT_SESSION_ID,
        scheme: str = DEFAULT_SCHEME,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.orchestrator = orchestrator
        self.session_id = session_id
        self.scheme = scheme
        self.history_limit = history_limit
        prefix = re.escape(scheme) + "://"
        # Tried in order; the first pattern that matches handles the URI.
        self._resource_matchers: list[tuple[re.Pattern, Callable[[str, re.Match, str | None], dict]]] = [
            (re.compile(rf"^{prefix}models$"), self._read_models),
            (re.compile(rf"^{prefix}history/([^/]*)$"), self._read_history),
            (re.compile(rf"^{prefix}review/([^/]+)$"), self._read_review),
        ]

    # ------------------------------------------------------------------ #
    # Discovery                                                            #
    # ------------------------------------------------------------------ #

    def manifest(self) -> dict:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {
                "name": SERVER_NAME,
                "version": SERVER_VERSION,
                "description": SERVER_DESCRIPTION,
            },
            "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
        }

    def list_tools(self) -> dict:
        return {"tools": list(TOOLS.values())}

    def list_prompts(self) -> dict:
        return {"prompts": list(PROMPTS.values())}

    # ------------------------------------------------------------------ #
    # Tools                                                                #
    # ------------------------------------------------------------------ #

    def call_tool(self, name: str, arguments: dict | None = None) -> dict:
        """Run one tool and wrap its JSON result as MCP text content.

        Raises BadRequestError for an unknown tool and ValidationError for
        bad arguments; in both cases nothing is executed.
        """
        try:
            tool = ToolName(name)
        except ValueError:
            raise BadRequestError(f"Unknown tool: {name}")
        args = arguments if arguments is not None else {}
        if not isinstance(args, dict):
            raise ValidationError("Tool arguments must be an object")

        logger.debug("MCP tool call: %s", tool.value)
        handler = getattr(self, _TOOL_HANDLERS[tool])
        return _text_content(handler(args))

    def _analyze_code_tool(self, args: dict) -> dict:
        code = args.get("code")
        focus = args.get("focus")
        if not code or not focus:
            raise ValidationError("Missing required arguments: code and focus")
        if focus not in Focus.values():
            raise ValidationError(f"Invalid focus. Must be one of: {', '.join(Focus.values())}")
        request = AnalysisRequest(
            code=code,
            focus=focus,
            language=_optional_str(args, "language"),
            model=_optional_str(args, "model"),
        )
        return self.orchestrator.analyze(request, self.session_id).to_dict()

    def _get_models_tool(self, args: dict) -> dict:
        return {"models": self.orchestrator.get_models()}

    def _get_history_tool(self, args: dict) -> dict:
        session_id = _optional_str(args, "sessionId") or self.session_id
        limit = self._parse_limit(args.get("limit"))
        history = self.orchestrator.get_history(session_id, limit=limit)
        # total counts the whole session, not just the returned page.
        total = self.orchestrator.count_history(session_id)
        return {"history": [h.to_dict() for h in history], "total": total}

    def _parse_limit(self, value: Any) -> int:
        if value is None:
            return self.history_limit
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not float(value).is_integer() or value < 1:
            raise ValidationError("'limit' must be a positive integer")
        return int(value)

    # ------------------------------------------------------------------ #
    # Resources                                                            #
    # ------------------------------------------------------------------ #

    def list_resources(self, session_id: str | None = None) -> dict:
        sid = session_id or self.session_id
        history = self.orchestrator.get_history(sid, limit=self.history_limit)
        resources = [
            {
                "uri": f"{self.scheme}://models",
                "name": "Available AI Models",
                "description": "List of AI models available for code analysis",
                "mimeType": JSON_MIME,
            },
            {
                "uri": f"{self.scheme}://history/{sid}",
                "name": "Review History",
                "description": f"Code review history for session {sid}",
                "mimeType": JSON_MIME,
            },
        ]
        for idx, review in enumerate(history, 1):
            resources.append(
                {
                    "uri": f"{self.scheme}://review/{review.id}",
                    "name": f"Review {idx}: {review.language or 'unknown'}",
                    "description": f"{review.focus} analysis - Score: {review.score}",
                    "mimeType": JSON_MIME,
                }
            )
        return {"resources": resources}

    def read_resource(self, uri: str, session_id: str | None = None) -> dict:
        for pattern, handler in self._resource_matchers:
            match = pattern.match(uri or "")
            if match:
                return handler(uri, match, session_id)
        raise NotFoundError(f"Resource not found: {uri}")

    def _read_models(self, uri: str, match: re.Match, session_id: str | None) -> dict:
        return self._json_contents(uri, {"models": self.orchestrator.get_models()})

    def _read_history(self, uri: str, match: re.Match, session_id: str | None) -> dict:
        sid = match.group(1) or session_id or self.session_id
        history = self.orchestrator.get_history(sid, limit=self.history_limit)
        return self._json_contents(uri, {"history": [h.to_dict() for h in history], "total": len(history)})

    def _read_review(self, uri: str, match: re.Match, session_id: str | None) -> dict:
        review_id = match.group(1)
        review = self.orchestrator.find_review(review_id, session_id or self.session_id)
        if review is None:
            raise NotFoundError(f"Review not found: {review_id}")
        return self._json_contents(uri, review.to_dict())

    @staticmethod
    def _json_contents(uri: str, payload: Any) -> dict:
        return {"contents": [{"uri": uri, "mimeType": JSON_MIME, "text": json.dumps(payload, indent=2)}]}

    # ------------------------------------------------------------------ #
    # Prompts                                                              #
    # ------------------------------------------------------------------ #

    def get_prompt(self, name: str, arguments: dict | None = None) -> dict:
        try:
            prompt = PromptName(name)
        except ValueError:
            raise NotFoundError(f"Prompt not found: {name}")
        args = arguments or {}
        if not isinstance(args, dict):
            raise ValidationError("Prompt arguments must be an object")
        return render_prompt(prompt, code=args.get("code"), language=args.get("language"))
