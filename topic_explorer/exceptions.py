"""
Error taxonomy for topic_explorer.

Only ``GenerationFailed`` is expected to reach user-facing code. ``ParseError`` is
raised and swallowed per fragment inside the transport, and ``TransportError`` /
``BackendError`` from the incremental leg are absorbed by the fallback combinator.
"""

from __future__ import annotations


class ExplorerError(Exception):
    """Base class for all topic_explorer errors."""


class ConfigError(ExplorerError):
    """Raised when a configuration file cannot be read or parsed."""


class TransportError(ExplorerError):
    """Connection failure or timeout talking to the backend. Always retryable."""


class BackendError(ExplorerError):
    """The backend answered with a non-success status (or an unusable body)."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Ollama error {status}: {body}")


class ParseError(ExplorerError):
    """A streamed fragment could not be decoded."""

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment
        super().__init__(f"Unparseable fragment: {fragment[:80]!r}")


class GenerationFailed(ExplorerError):
    """Both the incremental and the buffered attempt failed.

    ``cause`` is the buffered attempt's error; the incremental error is discarded.
    """

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)
