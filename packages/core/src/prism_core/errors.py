"""Domain errors shared by the orchestrator, the MCP adapter and the transport.

The transport maps BadRequestError to 400 and NotFoundError to 404.
StorageError lives in prism_store so that package stays usable on its own.
"""

from __future__ import annotations


class PrismError(Exception):
    """Base class for every error raised by prism_core."""


class ConfigError(PrismError):
    """Configuration could not be resolved into a usable runtime."""


class BadRequestError(PrismError):
    """The caller sent a request that cannot be executed."""


class ValidationError(BadRequestError):
    """A required field is missing or holds an invalid value."""


class NotFoundError(PrismError):
    """An unknown tool, resource, prompt or review id was requested."""


class ProviderUnavailable(PrismError):
    """The analysis backend failed or answered with something unusable.

    Never escapes a provider: BaseProvider.analyze answers it with the mock result.
    """


class FeedbackDecodeError(PrismError):
    """Stored feedback is not a serialized AnalysisResult."""
