"""
Scrollable console viewport over generated text.

``ViewportState`` is an immutable snapshot (wrapped lines, scroll offset, size) and
``render`` is a pure function of it. ``Pager`` is the input loop: it reads one key at
a time, maps it to an ``Action`` and swaps in a new state. Saving and follow-up
questions are modal sub-flows that return to scrolling when they finish.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .console import Console, run_blocking
from .fallback import attempt
from .notes import NoteStore, tag_title
from .session import ChatSession
from .transport import OllamaTransport
from .wrap import wrap_text

logger = logging.getLogger("topic_explorer")

MIN_WIDTH = 40
MIN_HEIGHT = 10
# Header, indicator, two separators, legend and status line.
CHROME_ROWS = 6

HEADER = "AI Result (Ollama)"
LEGEND = "Controls: q/Up=Up, e/Down=Down, b=Save to notes, t=Ask follow-up, Esc=Exit"
TURN_DELIMITER = "\n\n---\n"


class Action(Enum):
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"
    SAVE = "save"
    CONTINUE = "continue"
    EXIT = "exit"


ESCAPE = "\x1b"

KEY_BINDINGS: dict[str, Action] = {
    "q": Action.SCROLL_UP,
    "e": Action.SCROLL_DOWN,
    "b": Action.SAVE,
    "t": Action.CONTINUE,
    ESCAPE: Action.EXIT,
    # Arrow keys as returned by ClickConsole.read_key() on POSIX and Windows terminals.
    "\x1b[A": Action.SCROLL_UP,
    "\x1b[B": Action.SCROLL_DOWN,
    "\x1bOA": Action.SCROLL_UP,
    "\x1bOB": Action.SCROLL_DOWN,
    "\xe0H": Action.SCROLL_UP,
    "\xe0P": Action.SCROLL_DOWN,
    "\x00H": Action.SCROLL_UP,
    "\x00P": Action.SCROLL_DOWN,
}


def action_for_key(key: str) -> Action | None:
    """Map a raw keystroke to an ``Action``; letters are case-insensitive."""
    if key in KEY_BINDINGS:
        return KEY_BINDINGS[key]
    return KEY_BINDINGS.get(key.lower())


def viewport_size(columns: int, rows: int) -> tuple[int, int]:
    """Viewport width/height for a terminal of *columns* x *rows*."""
    return max(MIN_WIDTH, columns - 1), max(MIN_HEIGHT, rows - CHROME_ROWS)


# ---------------------------------------------------------------------------
# ViewportState
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewportState:
    lines: tuple[str, ...]
    width: int
    height: int
    top: int = 0

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError("width and height must be >= 1")
        if not 0 <= self.top <= self.max_top:
            raise ValueError(f"top must be within [0, {self.max_top}], got {self.top}")

    @classmethod
    def from_content(cls, content: str, width: int, height: int) -> ViewportState:
        """Wrap *content* from scratch and start at the first line."""
        return cls(lines=tuple(wrap_text(content, width)), width=width, height=height)

    @property
    def max_top(self) -> int:
        return max(0, len(self.lines) - self.height)

    def scroll_up(self) -> ViewportState:
        return replace(self, top=max(0, self.top - 1))

    def scroll_down(self) -> ViewportState:
        return replace(self, top=min(self.top + 1, self.max_top))

    def to_bottom(self) -> ViewportState:
        return replace(self, top=self.max_top)

    def visible(self) -> list[str]:
        """Exactly ``height`` lines; past the end of content they are blank."""
        window = list(self.lines[self.top : self.top + self.height])
        return window + [""] * (self.height - len(window))

    def indicator(self) -> str:
        total = len(self.lines)
        first = min(total, self.top + 1)
        last = min(total, self.top + self.height)
        return f"Lines {first}-{last} of {total}"


def render(state: ViewportState, status: str | None = None) -> str:
    """Full screen text for *state*: header, position, body, legend, status."""
    rule = "-" * max(10, state.width)
    parts = [HEADER, state.indicator(), rule, *state.visible(), rule, LEGEND]
    if status:
        parts.append(status)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Pager
# ---------------------------------------------------------------------------


class Pager:
    """Keyboard loop over a ``ViewportState``.

    The pager owns the displayed content for as long as it runs. Follow-up questions
    are appended to *session* and answered through *transport*; saved text goes to
    *notes*.

    Args:
        console: Where keys are read and screens are drawn.
        transport: Backend used for follow-up chat requests.
        session: Conversation so far; extended by each follow-up.
        notes: Destination for "save" actions.
        content: Initial text to display.
        width: Viewport width; derived from the terminal size when omitted.
        height: Viewport height; derived from the terminal size when omitted.
    """

    def __init__(
        self,
        console: Console,
        transport: OllamaTransport,
        session: ChatSession,
        notes: NoteStore,
        content: str,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        if width is None or height is None:
            default_width, default_height = viewport_size(*console.size())
            width = width or default_width
            height = height or default_height
        self.console = console
        self.transport = transport
        self.session = session
        self.notes = notes
        self._content = content or ""
        self._state = ViewportState.from_content(self._content, width, height)
        self._status: str | None = None

    @property
    def content(self) -> str:
        return self._content

    @property
    def state(self) -> ViewportState:
        return self._state

    async def run(self) -> str:
        """Loop until the user exits; returns the final content."""
        while True:
            self.draw()
            key = await run_blocking(self.console.read_key)
            action = action_for_key(key)
            if action is None:
                continue
            if action is Action.EXIT:
                return self._content
            await self.handle(action)

    async def handle(self, action: Action) -> None:
        if action is Action.SCROLL_UP:
            self._state = self._state.scroll_up()
        elif action is Action.SCROLL_DOWN:
            self._state = self._state.scroll_down()
        elif action is Action.SAVE:
            await self.save()
        elif action is Action.CONTINUE:
            await self.continue_conversation()

    def draw(self) -> None:
        self.console.clear()
        self.console.echo(render(self._state, self._status))
        self._status = None

    async def save(self) -> None:
        title = await run_blocking(
            self.console.read_line, "\nEnter a title for your new note: "
        )
        self.notes.append(tag_title(title.strip()), self._content)
        self._status = "Saved to your notes."

    async def continue_conversation(self) -> None:
        follow_up = await run_blocking(
            self.console.read_line, "\nEnter your follow-up question (blank to cancel): "
        )
        follow_up = follow_up.strip()
        if not follow_up:
            return

        self.session.add_user(follow_up)
        self.console.echo("\nContinuing the conversation (streaming)...")
        messages = self.session.to_messages()

        async def incremental() -> str:
            self.console.write("\n")
            try:
                return await self.transport.chat_stream(
                    messages,
                    model=self.session.model,
                    base_url=self.session.base_url,
                    on_token=self.console.write,
                )
            finally:
                self.console.write("\n")

        async def buffered() -> str:
            return await self.transport.chat(
                messages, model=self.session.model, base_url=self.session.base_url
            )

        outcome = await attempt(incremental, buffered)
        if not outcome.ok:
            self._status = f"Follow-up failed: {outcome.error}"
            return
        answer = outcome.text or ""
        if not answer.strip():
            self._status = "No content returned from Ollama."
            return

        self.session.add_assistant(answer)
        self._content = (
            f"{self._content}{TURN_DELIMITER}User: {follow_up}\n\nAssistant:\n{answer}"
        )
        self._state = ViewportState.from_content(
            self._content, self._state.width, self._state.height
        ).to_bottom()

