"""
Console surface used by the explorer and the pager.

``Console`` is the protocol the core depends on; ``ClickConsole`` implements it on a
real terminal with ``click``. Tests script their own implementation. Console reads
block, so async callers go through ``run_blocking``.
"""

from __future__ import annotations

import asyncio
import functools
import shutil
from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

import click

T = TypeVar("T")

# Windows consoles report arrow and function keys as a prefix byte followed by a scan
# code, delivered by two separate getchar() calls.
SCAN_CODE_PREFIXES = ("\x00", "\xe0")


async def run_blocking(func: Callable[..., T], /, *args: Any) -> T:
    """Run a blocking console call in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


@runtime_checkable
class Console(Protocol):
    def read_line(self, prompt: str) -> str: ...

    def read_key(self) -> str: ...

    def write(self, text: str) -> None: ...

    def echo(self, text: str = "", fg: str | None = None, bold: bool = False) -> None: ...

    def clear(self) -> None: ...

    def size(self) -> tuple[int, int]: ...


class ClickConsole:
    """Terminal console backed by ``click`` (prompt, getchar, echo, clear)."""

    def read_line(self, prompt: str) -> str:
        value = click.prompt(prompt, default="", show_default=False, prompt_suffix="")
        return str(value)

    def read_key(self) -> str:
        """One keystroke; a Windows scan-code pair is returned as a single string."""
        key = click.getchar()
        if key in SCAN_CODE_PREFIXES:
            key += click.getchar()
        return key

    def write(self, text: str) -> None:
        click.echo(text, nl=False)

    def echo(self, text: str = "", fg: str | None = None, bold: bool = False) -> None:
        click.secho(text, fg=fg, bold=bold)

    def clear(self) -> None:
        click.clear()

    def size(self) -> tuple[int, int]:
        columns, rows = shutil.get_terminal_size()
        return columns, rows
