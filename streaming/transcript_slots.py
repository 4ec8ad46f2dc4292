"""
Presentation targets for rendered transcripts.

Several text targets can exist side by side; each finished or in-progress
transcription writes to whichever slot is active when the text arrives.
"""
import threading
from typing import List


class TranscriptSlots:

    def __init__(self, count: int = 1):
        if count < 1:
            raise ValueError("need at least one transcript slot")
        self._texts: List[str] = [""] * count
        self._active = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._texts)

    @property
    def active_slot(self) -> int:
        return self._active

    @active_slot.setter
    def active_slot(self, index: int) -> None:
        if not 0 <= index < len(self._texts):
            raise IndexError(f"slot {index} out of range [0, {len(self._texts)})")
        with self._lock:
            self._active = index

    def update(self, text: str) -> None:
        """Sink for on_text_updated: write to the active slot."""
        with self._lock:
            self._texts[self._active] = text

    def get(self, index: int) -> str:
        with self._lock:
            return self._texts[index]

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._texts)
