"""Process-wide runtime: config, store, provider, orchestrator and MCP adapter.

Built once per process on first use and reused by every command and request.
The factory decides the store from the environment, so neither prism_core nor
prism_store know how a deployment is detected.
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

from prism_core.config import load_config, resolve_storage
from prism_core.mcp.adapter import McpAdapter
from prism_core.orchestrator import ReviewOrchestrator, build_provider
from prism_core.providers.base import BaseProvider
from prism_store.base import BaseStore

logger = logging.getLogger(__name__)


def build_store(config: dict, environ: Optional[Mapping[str, str]] = None) -> BaseStore:
    """Instantiate the store selected by the deployment environment.

    Store selection:
      deployment marker set → PostgresStore (URL from the environment)
      (default)             → SQLiteStore at config["store_path"]
    """
    target = resolve_storage(os.environ if environ is None else environ, config.get("store_path", ".prism.db"))

    if target.kind == "postgres":
        from prism_store.postgres import PostgresStore

        logger.info("Using networked review store")
        return PostgresStore(dsn=target.url)

    from prism_store.sqlite import SQLiteStore

    logger.info("Using embedded review store at %s", target.url)
    return SQLiteStore(db_path=target.url)


@dataclass
class Runtime:
    config: dict
    store: BaseStore
    provider: BaseProvider
    orchestrator: ReviewOrchestrator
    adapter: McpAdapter

    @classmethod
    def from_config(cls, config: dict, environ: Optional[Mapping[str, str]] = None) -> Runtime:
        store = build_store(config, environ)
        provider = build_provider(config)
        orchestrator = ReviewOrchestrator(
            provider=provider,
            store=store,
            history_limit=config["history_limit"],
            retention_days=config["retention_days"],
        )
        adapter = McpAdapter(
            orchestrator,
            session_id=config["mcp_session_id"],
            scheme=config["resource_scheme"],
            history_limit=config["mcp_history_limit"],
        )
        return cls(config=config, store=store, provider=provider, orchestrator=orchestrator, adapter=adapter)

    def close(self) -> None:
        # Drain the cleanup worker before the store goes away.
        self.orchestrator.close()
        self.store.close()


_runtime: Runtime | None = None
_lock = threading.Lock()


def get_runtime(config_path: Optional[str] = None) -> Runtime:
    """Return the process runtime, building it on first call.

    ``config_path`` only matters for the call that builds it; it defaults to
    ``PRISM_CONFIG`` or ``.prism.yml``.
    """
    global _runtime
    if _runtime is None:
        with _lock:
            if _runtime is None:
                path = config_path or os.environ.get("PRISM_CONFIG", ".prism.yml")
                _runtime = Runtime.from_config(load_config(path))
                atexit.register(_runtime.close)
    return _runtime


def reset_runtime() -> None:
    """Close and forget the process runtime."""
    global _runtime
    with _lock:
        if _runtime is not None:
            atexit.unregister(_runtime.close)
            _runtime.close()
            _runtime = None
