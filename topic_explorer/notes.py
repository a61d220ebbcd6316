"""
Note store used to keep generated text.

Only ``append`` is needed here. Entries are plain-text blocks::

    Title: <title>
    Type: AI Topic Explorer
    Entry:
    <body>
    ---
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

logger = logging.getLogger("topic_explorer")

ENTRY_TYPE = "AI Topic Explorer"
AI_GENERATED_TAG = " !AI GENERATED!"


@runtime_checkable
class NoteStore(Protocol):
    def append(self, title: str, body: str) -> None: ...


def tag_title(title: str) -> str:
    """Mark a title as model-generated."""
    return f"{title}{AI_GENERATED_TAG}"


def format_entry(title: str, body: str, entry_type: str = ENTRY_TYPE) -> str:
    return f"Title: {title}\nType: {entry_type}\nEntry:\n{body}\n---"


class FileNoteStore:
    """Appends entries to a single text file, creating it on first use.

    Write failures are logged, not raised.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8") -> None:
        self.path = Path(path).expanduser()
        self.encoding = encoding
        self._lock = threading.Lock()

    def append(self, title: str, body: str) -> None:
        entry = format_entry(title, body)
        try:
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding=self.encoding) as fh:
                    fh.write(entry + "\n")
        except OSError:
            logger.warning(
                "[TopicExplorer Notes] Could not append entry to '%s'.", self.path, exc_info=True
            )

    def __repr__(self) -> str:
        return f"FileNoteStore(path={self.path!r})"
