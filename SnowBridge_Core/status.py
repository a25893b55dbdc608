"""
Single-line status sink.

Every user-facing outcome in the core is a short human-readable string. The
StatusLine keeps the current text and a bounded history, and forwards each
message to an optional listener (a UI label, or print() in the CLI).
"""

import logging
import re
from collections import deque
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class StatusLine:
    """
    Current status text plus recent history.

    Args:
        listener: Called with each normalised message
        max_chars: Truncate longer messages with "…" (None = unlimited)
        history: Number of past messages to keep
    """

    def __init__(
        self,
        listener: Optional[Callable[[str], None]] = None,
        max_chars: Optional[int] = None,
        history: int = 50,
    ) -> None:
        self.listener = listener
        self.max_chars = max_chars
        self.text = ""
        self._history: Deque[str] = deque(maxlen=max(1, history))

    def set(self, msg: object) -> str:
        """Show a message; returns the text actually shown."""
        text = _WHITESPACE_RE.sub(" ", "" if msg is None else str(msg)).strip()
        if self.max_chars is not None and len(text) > self.max_chars:
            text = text[: max(0, self.max_chars - 1)].rstrip() + "…"
        self.text = text
        self._history.append(text)
        logger.debug(f"status: {text}")
        if self.listener is not None:
            self.listener(text)
        return text

    __call__ = set

    def hard_fail(self, msg: str, err: Optional[BaseException] = None) -> str:
        """Log an error and show "Error: <msg>"."""
        if err is not None:
            logger.error(f"❌ {msg}: {err}")
        else:
            logger.error(f"❌ {msg}")
        return self.set(f"Error: {msg}")

    @property
    def history(self) -> List[str]:
        return list(self._history)

    def clear(self) -> None:
        self.text = ""
        self._history.clear()


def with_roll(text: str, roll: Optional[str]) -> str:
    """Append " • roll R" when a roll is known."""
    return f"{text} • roll {roll}" if roll else text
