"""Static MCP catalogs: server identity, tool definitions and prompt templates.

Tool and prompt names are closed enums. The adapter dispatches on the enum
members and checks at import time that every tool has a handler.
"""

from __future__ import annotations

from enum import Enum

from prism_core.models import Focus

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "prism-code-review"
SERVER_VERSION = "1.0.0"
SERVER_DESCRIPTION = "AI-powered code review assistant with security, performance, and readability analysis"

CODE_PLACEHOLDER = "[code will be inserted here]"


class ToolName(str, Enum):
    ANALYZE_CODE = "analyze_code"
    GET_AVAILABLE_MODELS = "get_available_models"
    GET_REVIEW_HISTORY = "get_review_history"


class PromptName(str, Enum):
    SECURITY_REVIEW = "security_review"
    PERFORMANCE_REVIEW = "performance_review"
    READABILITY_REVIEW = "readability_review"


TOOLS: dict[ToolName, dict] = {
    ToolName.ANALYZE_CODE: {
        "name": ToolName.ANALYZE_CODE.value,
        "description": "Analyze code for security, performance, readability or bug issues using AI",
        "inputSchema": {
            "type": "object",
            "properties": {
                "code": {"type": "string", "description": "The code to analyze"},
                "focus": {
                    "type": "string",
                    "enum": Focus.values(),
                    "description": "Analysis focus area",
                },
                "language": {
                    "type": "string",
                    "description": "Programming language (optional, auto-detected if not provided)",
                },
                "model": {"type": "string", "description": "Model to use (optional)"},
            },
            "required": ["code", "focus"],
        },
    },
    ToolName.GET_AVAILABLE_MODELS: {
        "name": ToolName.GET_AVAILABLE_MODELS.value,
        "description": "Get list of available AI models for code analysis",
        "inputSchema": {"type": "object", "properties": {}},
    },
    ToolName.GET_REVIEW_HISTORY: {
        "name": ToolName.GET_REVIEW_HISTORY.value,
        "description": "Retrieve code review history for a session",
        "inputSchema": {
            "type": "object",
            "properties": {
                "sessionId": {"type": "string", "description": "Session ID to retrieve history for"},
                "limit": {"type": "number", "description": "Maximum number of reviews to return (default: 10)"},
            },
        },
    },
}

_PROMPT_ARGUMENTS = [
    {"name": "code", "description": "Code to analyze", "required": True},
    {"name": "language", "description": "Programming language", "required": False},
]

# name → (catalog description, rendered description, request line, focus line)
_PROMPT_TEXT: dict[PromptName, tuple[str, str, str, str]] = {
    PromptName.SECURITY_REVIEW: (
        "Analyze code for security vulnerabilities",
        "Security-focused code review",
        "security vulnerabilities",
        "SQL injection, XSS, authentication issues, data exposure, and other security concerns.",
    ),
    PromptName.PERFORMANCE_REVIEW: (
        "Analyze code for performance issues",
        "Performance-focused code review",
        "performance issues",
        "algorithmic complexity, memory usage, unnecessary operations, and optimization opportunities.",
    ),
    PromptName.READABILITY_REVIEW: (
        "Analyze code for readability improvements",
        "Readability-focused code review",
        "readability improvements",
        "naming conventions, code structure, documentation, and maintainability.",
    ),
}

PROMPTS: dict[PromptName, dict] = {
    name: {"name": name.value, "description": text[0], "arguments": _PROMPT_ARGUMENTS}
    for name, text in _PROMPT_TEXT.items()
}


def render_prompt(name: PromptName, code: str | None = None, language: str | None = None) -> dict:
    _, description, subject, focus = _PROMPT_TEXT[name]
    text = (
        f"Please analyze the following {language or 'code'} for {subject}:\n\n"
        f"{code or CODE_PLACEHOLDER}\n\n"
        f"Focus on: {focus}"
    )
    return {
        "name": name.value,
        "description": description,
        "messages": [{"role": "user", "content": {"type": "text", "text": text}}],
    }
