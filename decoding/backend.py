"""
Model capabilities consumed by the decode engine and the session.

A backend is any object exposing these five calls; the engine treats every
tensor as opaque except the logits handed to run_argmax.
"""
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from decoding.kv_cache import KeyValueCache


def greedy_token(logits: Any) -> int:
    """
    Argmax over the vocabulary axis of the last position.
    Ties resolve to the lowest index (np.argmax returns the first maximum).
    """
    arr = np.asarray(logits, dtype=np.float32)
    if arr.ndim == 0:
        raise ValueError("logits must have a vocabulary axis")
    arr = arr.reshape(-1, arr.shape[-1])[-1]
    return int(np.argmax(arr))


class ModelBackend(ABC):
    """
    Base class for encoder/decoder backends.

    Subclasses implement the numeric kernels; backend choice (device, weights,
    runtime) is configuration and stays out of the decode engine.
    """

    @abstractmethod
    def extract_features(self, pcm: np.ndarray) -> Any:
        """Float32 16 kHz mono samples -> encoder input (log-mel spectrogram)."""

    @abstractmethod
    def run_encoder(self, features: Any) -> Any:
        """Encoder input -> encoded audio (fixed-shape hidden state)."""

    @abstractmethod
    def run_full_context_decoder(self, token_ids: np.ndarray, encoded_audio: Any) -> KeyValueCache:
        """(1, n) token ids + encoded audio -> freshly computed 16-tensor cache."""

    @abstractmethod
    def run_single_token_decoder(self, token_id: int, cache: KeyValueCache) -> Any:
        """One token + cache -> logits over the vocabulary."""

    def run_argmax(self, logits: Any) -> int:
        return greedy_token(logits)

    def close(self) -> None:
        """Release model resources."""
