"""
Incremental-first generation with a buffered fallback.

``attempt`` is the result-returning form: it never raises for generation errors and
hands back an ``Outcome`` the caller can branch on. ``resolve`` is the raising form
built on top of it for callers that prefer exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .exceptions import GenerationFailed

logger = logging.getLogger("topic_explorer")

Operation = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class Outcome:
    """Either the generated ``text`` or the ``error`` of the buffered attempt."""

    text: str | None = None
    error: Exception | None = None
    mode: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise GenerationFailed(self.error) from self.error
        return self.text or ""


async def attempt(incremental: Operation, buffered: Operation) -> Outcome:
    """Run *incremental*; on any error discard it and run *buffered* instead.

    The two legs run one after the other, never concurrently. Text produced by a
    failed incremental leg is dropped along with its error.
    """
    try:
        return Outcome(text=await incremental(), mode="incremental")
    except Exception as exc:
        logger.warning(
            "[TopicExplorer Fallback] Incremental request failed (%s: %s); retrying buffered.",
            type(exc).__name__,
            exc,
        )

    try:
        return Outcome(text=await buffered(), mode="buffered")
    except Exception as exc:
        logger.error(
            "[TopicExplorer Fallback] Buffered request failed as well: %s: %s",
            type(exc).__name__,
            exc,
        )
        return Outcome(error=exc)


async def resolve(incremental: Operation, buffered: Operation) -> str:
    """Like ``attempt`` but raises ``GenerationFailed`` when both legs fail."""
    outcome = await attempt(incremental, buffered)
    return outcome.unwrap()
