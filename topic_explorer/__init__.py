"""
Topic Explorer: long-form topic explanations from a local Ollama model, rendered in a
scrollable console viewport with follow-up chat.

The transport streams output as it is generated and falls back to a buffered request
when streaming fails; the pager keeps the conversation going in place.
"""

from .config import ExplorerConfig, SamplingOptions, load_config
from .exceptions import (
    BackendError,
    ConfigError,
    ExplorerError,
    GenerationFailed,
    ParseError,
    TransportError,
)
from .explorer import explore
from .fallback import Outcome, attempt, resolve
from .pager import Pager, ViewportState, render
from .session import ChatSession, Message, Role
from .transport import OllamaTransport
from .wrap import wrap_text

__all__ = [
    "ExplorerConfig",
    "SamplingOptions",
    "load_config",
    "ExplorerError",
    "ConfigError",
    "TransportError",
    "BackendError",
    "ParseError",
    "GenerationFailed",
    "explore",
    "Outcome",
    "attempt",
    "resolve",
    "Pager",
    "ViewportState",
    "render",
    "ChatSession",
    "Message",
    "Role",
    "OllamaTransport",
    "wrap_text",
]
