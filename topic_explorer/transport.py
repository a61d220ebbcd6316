"""
Ollama HTTP transport: buffered and incremental generation over ``httpx``.

Two request modes are supported against ``/api/generate`` (single-turn) and
``/api/chat`` (multi-turn):

- buffered: ``stream=false``, one JSON body;
- incremental: ``stream=true``, newline-delimited JSON fragments read lazily through
  ``FragmentStream`` and handed to an ``on_token`` callback as they arrive.

Fragments that fail to decode are skipped. Timeouts and connection failures surface
as ``TransportError``; non-success statuses as ``BackendError``. Nothing is retried
here: retry/fallback policy lives in ``topic_explorer.fallback``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_STREAM_TIMEOUT_SECONDS,
    ExplorerConfig,
    SamplingOptions,
)
from .exceptions import BackendError, ParseError, TransportError

logger = logging.getLogger("topic_explorer")

GENERATE_PATH = "/api/generate"
CHAT_PATH = "/api/chat"

TokenCallback = Callable[[str], None]
TextExtractor = Callable[[Any], str]


# ---------------------------------------------------------------------------
# Request / response shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationRequest:
    """One request body. Built per call and never mutated afterwards."""

    model: str
    stream: bool
    options: SamplingOptions = field(default_factory=SamplingOptions)
    prompt: str | None = None
    messages: tuple[dict[str, str], ...] | None = None

    @property
    def path(self) -> str:
        return CHAT_PATH if self.messages is not None else GENERATE_PATH

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "stream": self.stream,
            "options": self.options.to_payload(),
        }
        if self.messages is not None:
            payload["messages"] = [dict(message) for message in self.messages]
        else:
            payload["prompt"] = self.prompt or ""
        return payload


def extract_generate_text(record: Any) -> str:
    """``{"response": ...}`` → text; absent or non-string fields are ``""``."""
    if not isinstance(record, dict):
        return ""
    value = record.get("response")
    return value if isinstance(value, str) else ""


def extract_chat_text(record: Any) -> str:
    """``{"message": {"content": ...}}`` → text; absent fields are ``""``."""
    if not isinstance(record, dict):
        return ""
    message = record.get("message")
    if not isinstance(message, dict):
        return ""
    value = message.get("content")
    return value if isinstance(value, str) else ""


def _is_done(record: Any) -> bool:
    return isinstance(record, dict) and record.get("done") is True


def parse_fragment(line: str) -> Any:
    """Decode one NDJSON fragment, raising ``ParseError`` when it is not JSON."""
    try:
        return json.loads(line)
    except ValueError as exc:
        raise ParseError(line) from exc


# ---------------------------------------------------------------------------
# FragmentStream
# ---------------------------------------------------------------------------


class FragmentStream:
    """Cold async stream of text pieces from an incremental response.

    Each ``async for`` issues a fresh request; nothing is shared between iterations.
    Iteration stops at the first fragment with ``done: true`` or at end of body.
    ``timeout`` bounds one whole iteration, from connect to the last fragment.
    """

    def __init__(
        self,
        client_factory: Callable[[], httpx.AsyncClient],
        request: GenerationRequest,
        extract: TextExtractor,
        timeout: float | None = None,
    ) -> None:
        self.client_factory = client_factory
        self.request = request
        self.extract = extract
        self.timeout = timeout

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        try:
            async with asyncio.timeout(self.timeout):
                async with self.client_factory() as client:
                    async with client.stream(
                        "POST", self.request.path, json=self.request.to_payload()
                    ) as response:
                        if not response.is_success:
                            body = (await response.aread()).decode("utf-8", errors="replace")
                            raise BackendError(response.status_code, body)

                        async for line in response.aiter_lines():
                            if not line.strip():
                                continue
                            try:
                                record = parse_fragment(line)
                            except ParseError as exc:
                                logger.debug(
                                    "[TopicExplorer Transport] Skipping fragment: %s", exc
                                )
                                continue

                            piece = self.extract(record)
                            if piece:
                                yield piece
                            if _is_done(record):
                                break
        except TimeoutError as exc:
            raise TransportError(
                f"Stream {self.request.path} timed out after {self.timeout}s"
            ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"Stream {self.request.path} timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Stream {self.request.path} failed: {exc}") from exc

    def __repr__(self) -> str:
        return f"FragmentStream(path={self.request.path!r}, model={self.request.model!r})"


# ---------------------------------------------------------------------------
# OllamaTransport
# ---------------------------------------------------------------------------


class OllamaTransport:
    """Issues generation requests against one Ollama base URL.

    Args:
        base_url: Backend root, e.g. ``http://localhost:11434``.
        model: Default model tag; each call may override it.
        options: Default sampling options; each call may override them.
        request_timeout: Overall bound for one buffered call, in seconds.
        stream_timeout: Overall bound for one incremental call, in seconds. Longer than the
            buffered one since the connection stays open for the whole generation.
        http_transport: Optional ``httpx`` transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        options: SamplingOptions | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT_SECONDS,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if request_timeout <= 0 or stream_timeout <= 0:
            raise ValueError("timeouts must be > 0")
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.options = options or SamplingOptions()
        self.request_timeout = request_timeout
        self.stream_timeout = stream_timeout
        self._http_transport = http_transport

    @classmethod
    def from_config(
        cls, config: ExplorerConfig, http_transport: httpx.AsyncBaseTransport | None = None
    ) -> OllamaTransport:
        return cls(
            base_url=config.base_url,
            model=config.model,
            options=config.sampling,
            request_timeout=config.request_timeout,
            stream_timeout=config.stream_timeout,
            http_transport=http_transport,
        )

    # -- public operations ---------------------------------------------------

    async def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        options: SamplingOptions | None = None,
    ) -> str:
        """Buffered single-turn completion."""
        request = self._request(prompt=prompt, stream=False, model=model, options=options)
        return await self._buffered(request, extract_generate_text)

    async def complete_stream(
        self,
        prompt: str,
        *,
        model: str | None = None,
        options: SamplingOptions | None = None,
        on_token: TokenCallback | None = None,
    ) -> str:
        """Incremental single-turn completion; returns the accumulated text."""
        request = self._request(prompt=prompt, stream=True, model=model, options=options)
        return await self._incremental(request, extract_generate_text, on_token)

    async def chat(
        self,
        messages: Sequence[dict[str, str]],
        *,
        model: str | None = None,
        options: SamplingOptions | None = None,
        base_url: str | None = None,
    ) -> str:
        """Buffered multi-turn chat; returns the assistant's text.

        ``base_url`` sends this one call to another backend, e.g. the one a chat
        session was opened against.
        """
        request = self._request(messages=messages, stream=False, model=model, options=options)
        return await self._buffered(request, extract_chat_text, base_url)

    async def chat_stream(
        self,
        messages: Sequence[dict[str, str]],
        *,
        model: str | None = None,
        options: SamplingOptions | None = None,
        on_token: TokenCallback | None = None,
        base_url: str | None = None,
    ) -> str:
        """Incremental multi-turn chat; returns the accumulated assistant text."""
        request = self._request(messages=messages, stream=True, model=model, options=options)
        return await self._incremental(request, extract_chat_text, on_token, base_url)

    def fragments(
        self,
        prompt: str | None = None,
        *,
        messages: Sequence[dict[str, str]] | None = None,
        model: str | None = None,
        options: SamplingOptions | None = None,
    ) -> FragmentStream:
        """Lazy incremental stream for callers that want to consume pieces directly."""
        request = self._request(
            prompt=prompt, messages=messages, stream=True, model=model, options=options
        )
        extract = extract_chat_text if messages is not None else extract_generate_text
        return self._stream(request, extract)

    # -- internals -----------------------------------------------------------

    def _request(
        self,
        *,
        stream: bool,
        prompt: str | None = None,
        messages: Sequence[dict[str, str]] | None = None,
        model: str | None = None,
        options: SamplingOptions | None = None,
    ) -> GenerationRequest:
        return GenerationRequest(
            model=model or self.model,
            stream=stream,
            options=options or self.options,
            prompt=prompt,
            messages=tuple(dict(m) for m in messages) if messages is not None else None,
        )

    def _client(self, timeout: float, base_url: str | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=(base_url or self.base_url).rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=self._http_transport,
        )

    def _stream(
        self, request: GenerationRequest, extract: TextExtractor, base_url: str | None = None
    ) -> FragmentStream:
        return FragmentStream(
            lambda: self._client(self.stream_timeout, base_url),
            request,
            extract,
            timeout=self.stream_timeout,
        )

    async def _buffered(
        self, request: GenerationRequest, extract: TextExtractor, base_url: str | None = None
    ) -> str:
        target = (base_url or self.base_url).rstrip("/")
        logger.debug(
            "[TopicExplorer Transport] POST %s%s (buffered, model=%s)",
            target,
            request.path,
            request.model,
        )
        try:
            async with asyncio.timeout(self.request_timeout):
                async with self._client(self.request_timeout, target) as client:
                    response = await client.post(request.path, json=request.to_payload())
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise TransportError(
                f"Request to {target}{request.path} timed out after {self.request_timeout:.0f}s"
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Could not reach {target}: {exc}") from exc

        if not response.is_success:
            raise BackendError(response.status_code, response.text)
        try:
            record = response.json()
        except ValueError as exc:
            raise BackendError(response.status_code, response.text) from exc
        return extract(record)

    async def _incremental(
        self,
        request: GenerationRequest,
        extract: TextExtractor,
        on_token: TokenCallback | None,
        base_url: str | None = None,
    ) -> str:
        logger.debug(
            "[TopicExplorer Transport] POST %s (incremental, model=%s)",
            request.path,
            request.model,
        )
        pieces: list[str] = []
        async for piece in self._stream(request, extract, base_url):
            if on_token is not None:
                on_token(piece)
            pieces.append(piece)
        return "".join(pieces)

    def __repr__(self) -> str:
        return f"OllamaTransport(base_url={self.base_url!r}, model={self.model!r})"
