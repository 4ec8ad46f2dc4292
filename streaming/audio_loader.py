"""
Load a recorded clip into the fixed encoder window.
"""
import logging

import librosa
import numpy as np

from streaming.audio_buffer import MAX_WINDOW_SECONDS, SAMPLE_RATE, pad_or_trim

logger = logging.getLogger(__name__)


def load_audio_clip(
    path: str,
    sample_rate: int = SAMPLE_RATE,
    window_seconds: float = MAX_WINDOW_SECONDS,
) -> np.ndarray:
    """
    Load any librosa-readable file as mono float32 at sample_rate, always one
    full window long (zero padded if the clip is shorter, cut if longer).
    """
    y, sr = librosa.load(path, sr=sample_rate, mono=True, duration=window_seconds)
    logger.info("Loaded audio %s: %.2fs @ %d Hz", path, len(y) / sr if sr else 0.0, sr)
    return pad_or_trim(y, int(window_seconds * sample_rate))
