import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from prism_core.errors import ConfigError

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "model": None,  # None = the provider's built-in default model
    "store_path": ".prism.db",
    "history_limit": 20,
    "mcp_history_limit": 10,
    "mcp_session_id": "mcp-session",
    "resource_scheme": "prism",
    "retention_days": 30,
    "cors_origins": ["*"],
    "log_level": "INFO",
}

# Environment variables whose presence means "deployed": use networked storage.
DEPLOYMENT_MARKERS = ("VERCEL", "PRISM_DEPLOYMENT")

# Connection URL sources, first non-empty wins.
DATABASE_URL_SOURCES = ("PRISMA_DATABASE_URL", "POSTGRES_PRISMA_URL", "POSTGRES_URL", "DATABASE_URL")


@dataclass(frozen=True)
class StorageTarget:
    kind: str  # "sqlite" | "postgres"
    url: str  # file path for sqlite, connection URL for postgres


def load_config(config_path: str = ".prism.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prism.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "cors_origins": list(DEFAULT_CONFIG["cors_origins"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config


def resolve_storage(environ: Mapping[str, str], store_path: str = ".prism.db") -> StorageTarget:
    """Pick the storage backend from an environment snapshot.

    Networked storage iff a deployment marker is present; the connection URL
    is then the first non-empty entry of DATABASE_URL_SOURCES. The URL's
    contents are not inspected. Pure function of its inputs.
    """
    if any(environ.get(marker) for marker in DEPLOYMENT_MARKERS):
        for source in DATABASE_URL_SOURCES:
            url = environ.get(source)
            if url:
                return StorageTarget(kind="postgres", url=url)
        raise ConfigError(
            "Deployment marker is set but no database URL was found. "
            f"Set one of: {', '.join(DATABASE_URL_SOURCES)}"
        )
    return StorageTarget(kind="sqlite", url=store_path)
