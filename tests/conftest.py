"""
Shared fixtures and helpers for the topic_explorer test-suite.

Provides a scripted console (queued lines and keys, captured output) and a small fake
Ollama backend served through ``httpx.MockTransport``.
"""

import asyncio
import json

import httpx
import pytest

from topic_explorer.pager import ESCAPE, HEADER
from topic_explorer.transport import OllamaTransport


class ScriptedConsole:
    """Console double: answers prompts and keystrokes from queues.

    Once the key queue runs dry it answers Esc, so a pager under test always ends.
    """

    def __init__(self, lines=(), keys=(), size=(81, 16)):
        self.lines = list(lines)
        self.keys = list(keys)
        self._size = size
        self.prompts: list[str] = []
        self.output: list[str] = []
        self.screens: list[str] = []
        self.clears = 0

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.lines.pop(0) if self.lines else ""

    def read_key(self) -> str:
        return self.keys.pop(0) if self.keys else ESCAPE

    def write(self, text: str) -> None:
        self.output.append(text)

    def echo(self, text: str = "", fg=None, bold=False) -> None:
        if text.startswith(HEADER):
            self.screens.append(text)
        self.output.append(text + "\n")

    def clear(self) -> None:
        self.clears += 1

    def size(self):
        return self._size

    @property
    def text(self) -> str:
        return "".join(self.output)


class FakeOllama:
    """Request handler for ``httpx.MockTransport`` mimicking the Ollama HTTP API.

    Each entry in ``routes`` maps ``(path, stream)`` to either an ``httpx.Response``,
    a callable ``request -> httpx.Response`` or an exception instance to raise.
    Every received request body is recorded in ``requests``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests: list[tuple[str, dict]] = []
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request.url.path, body))
        self.urls.append(str(request.url))
        key = (request.url.path, bool(body.get("stream")))
        if key not in self.routes:
            return httpx.Response(404, text=f"no route for {key}")
        handler = self.routes[key]
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(request)
        return handler

    def calls(self, path: str, stream: bool) -> list[dict]:
        return [body for p, body in self.requests if p == path and bool(body.get("stream")) == stream]


def ndjson_response(*records, raw_lines=(), status=200) -> httpx.Response:
    """Streamed body: one JSON object per line, plus any raw (possibly broken) lines."""
    lines = [json.dumps(record) for record in records]
    lines.extend(raw_lines)
    return httpx.Response(status, content=("\n".join(lines) + "\n").encode("utf-8"))


def trickle_response(body: bytes, delay: float = 0.05) -> httpx.Response:
    """A 200 response whose body arrives one byte every *delay* seconds."""

    async def chunks():
        for byte in body:
            await asyncio.sleep(delay)
            yield bytes([byte])

    return httpx.Response(200, content=chunks())


def make_transport(backend: FakeOllama, **kwargs) -> OllamaTransport:
    kwargs.setdefault("base_url", "http://ollama.test")
    kwargs.setdefault("model", "llama3:8b")
    return OllamaTransport(http_transport=httpx.MockTransport(backend), **kwargs)


@pytest.fixture
def console():
    return ScriptedConsole()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep host Ollama/config settings out of the tests."""
    for key in (
        "OLLAMA_BASE_URL",
        "OLLAMA_MODEL",
        "OLLAMA_TEMPERATURE",
        "OLLAMA_TOP_P",
        "OLLAMA_NUM_PREDICT",
        "OLLAMA_TIMEOUT",
        "OLLAMA_STREAM_TIMEOUT",
        "TOPIC_EXPLORER_NOTES",
        "TOPIC_EXPLORER_CONFIG",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
