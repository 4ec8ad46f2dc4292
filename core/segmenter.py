"""
Online sentence segmentation of the detokenized stream into bullet lines.
"""
import re
import threading
from typing import List, Optional

BULLET = "• "
TERMINATOR_RE = re.compile(r"[.?!]")


def clean_sentence(text: Optional[str]) -> str:
    """
    Collapse whitespace runs, drop whitespace before punctuation ("word ," -> "word,"),
    trim, and uppercase the first character.
    """
    if not text or not text.strip():
        return ""
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s+([.,!?;:])", r"\1", text)
    text = text.strip()
    if text:
        text = text[0].upper() + text[1:]
    return text


class SentenceSegmenter:
    """
    Accumulates fragments in the current sentence and commits a cleaned bullet
    whenever a fragment contains '.', '?' or '!'.

    render() may be called from another thread; bullet snapshots are copies.
    """

    def __init__(self, bullet: str = BULLET):
        self.bullet = bullet
        self._current: List[str] = []
        self._bullets: List[str] = []
        self._lock = threading.Lock()

    def feed(self, fragment: str) -> bool:
        """Append a fragment; returns True if it closed a sentence."""
        if not fragment:
            return False
        self._current.append(fragment)
        if TERMINATOR_RE.search(fragment):
            self.flush()
            return True
        return False

    def flush(self) -> Optional[str]:
        """Commit the in-flight sentence (if it cleans to something). Returns the new bullet."""
        if not self._current:
            return None
        chunk = clean_sentence("".join(self._current))
        self._current = []
        if not chunk:
            return None
        line = self.bullet + chunk
        with self._lock:
            self._bullets.append(line)
        return line

    @property
    def current_sentence(self) -> str:
        return "".join(self._current)

    @property
    def bullets(self) -> List[str]:
        with self._lock:
            return list(self._bullets)

    def render(self) -> str:
        return "\n".join(self.bullets)

    def reset(self) -> None:
        self._current = []
        with self._lock:
            self._bullets.clear()
