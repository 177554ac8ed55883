"""FastAPI application factory for prism.

Creates the app with CORS, error envelopes and the review and MCP routers.
Domain errors are translated to HTTP here; route handlers only call into the
runtime and return JSON.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prism_cli.runtime import Runtime, get_runtime
from prism_core.errors import BadRequestError, NotFoundError, PrismError
from prism_store.base import StorageError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Most specific first; the first isinstance match decides the status.
_STATUS_BY_ERROR: list[tuple[type[Exception], int]] = [
    (BadRequestError, 400),
    (NotFoundError, 404),
    (StorageError, 503),
    (PrismError, 500),
]


def error_body(exc: Exception) -> dict:
    return {"error": {"type": type(exc).__name__, "message": str(exc)}}


async def _handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    status = next(code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls))
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=error_body(exc))


def create_app(runtime: Runtime) -> FastAPI:
    """Create and configure the FastAPI application around ``runtime``."""
    app = FastAPI(
        title="prism API",
        description="AI code review with an MCP interface",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime.config.get("cors_origins", ["*"]),
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.runtime = runtime

    app.add_exception_handler(PrismError, _handle_domain_error)
    app.add_exception_handler(StorageError, _handle_domain_error)

    from prism_cli.server.routes.mcp import router as mcp_router
    from prism_cli.server.routes.review import router as review_router

    app.include_router(review_router, prefix=API_PREFIX)
    app.include_router(mcp_router, prefix=API_PREFIX)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": "prism"}

    logger.debug("FastAPI app created with review and MCP routes")
    return app


_app: Optional[FastAPI] = None
_app_lock = threading.Lock()


def get_app() -> FastAPI:
    """Return the process-wide app, built on first call around get_runtime().

    Serverless entry points call this on every invocation; warm instances get
    the same app, store connection and cleanup worker back.
    """
    global _app
    if _app is None:
        with _app_lock:
            if _app is None:
                _app = create_app(get_runtime())
    return _app


def reset_app() -> None:
    """Forget the cached app. The runtime is reset separately."""
    global _app
    with _app_lock:
        _app = None
