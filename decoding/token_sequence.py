"""
Fixed-capacity decoder input sequence.

Slots 0..2 hold the prompt prefix (start-of-transcript, language, task); the
logical length starts at 3 and grows by one per decode step.
"""
from typing import List, Sequence

import numpy as np

DEFAULT_MAX_TOKENS = 100


class TokenSequence:

    def __init__(self, prefix: Sequence[int], capacity: int = DEFAULT_MAX_TOKENS):
        if capacity < len(prefix) + 2:
            raise ValueError(f"capacity {capacity} too small for a {len(prefix)}-token prefix")
        self.capacity = capacity
        self.prefix = tuple(int(t) for t in prefix)
        self._ids = np.zeros(capacity, dtype=np.int64)
        self._count = 0
        self.reset()

    def reset(self) -> None:
        self._ids[:] = 0
        self._ids[: len(self.prefix)] = self.prefix
        self._count = len(self.prefix)

    @property
    def count(self) -> int:
        return self._count

    def __len__(self) -> int:
        return self._count

    def append(self, token_id: int) -> None:
        if self._count >= self.capacity:
            raise IndexError(f"TokenSequence full ({self.capacity} tokens)")
        self._ids[self._count] = token_id
        self._count += 1

    def tokens(self) -> List[int]:
        """Copy of the live part (length == count)."""
        return [int(t) for t in self._ids[: self._count]]

    def as_array(self) -> np.ndarray:
        """(1, count) int64 array, the shape the decoder takes as input_ids."""
        return self._ids[: self._count].reshape(1, -1).copy()

    def budget_exhausted(self) -> bool:
        return self._count >= self.capacity - 1
