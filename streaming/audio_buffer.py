"""
Fixed-length PCM window for one recording.

Accumulates incoming 16-bit mono chunks until the window (30 s by default) is
full, then hands the encoder a float32 array padded with zeros to the full
window length, the fixed input shape the encoder expects.
"""

import time

import numpy as np

# 16 kHz mono, 16-bit = 32000 bytes/sec
SAMPLE_RATE = 16000
BYTES_PER_SAMPLE = 2
BYTES_PER_SECOND = SAMPLE_RATE * BYTES_PER_SAMPLE
MAX_WINDOW_SECONDS = 30.0


def bytes_to_duration_ms(num_bytes: int) -> float:
    """Convert raw audio byte count to duration in milliseconds."""
    if num_bytes <= 0:
        return 0.0
    return (num_bytes / BYTES_PER_SECOND) * 1000.0


def duration_ms_to_bytes(ms: float) -> int:
    """Convert duration in ms to byte count for 16 kHz 16-bit mono."""
    return int((ms / 1000.0) * BYTES_PER_SECOND)


def pad_or_trim(samples: np.ndarray, num_samples: int) -> np.ndarray:
    """Zero-pad or cut float samples to exactly num_samples."""
    samples = np.asarray(samples, dtype=np.float32).reshape(-1)
    if len(samples) >= num_samples:
        return samples[:num_samples].copy()
    out = np.zeros(num_samples, dtype=np.float32)
    out[: len(samples)] = samples
    return out


class PcmWindow:
    """
    Per-recording PCM buffer.

    - Accepts chunks of any size; bytes past the window are dropped.
    - An odd trailing byte is ignored until its pair arrives.
    - `to_samples()` returns the float32 window, zero padded.
    """

    def __init__(self, window_seconds: float = MAX_WINDOW_SECONDS, sample_rate: int = SAMPLE_RATE):
        """
        Args:
            window_seconds: Window length; the encoder always sees this many seconds.
            sample_rate: Samples per second of the incoming PCM.
        """
        self.sample_rate = sample_rate
        self.window_samples = int(window_seconds * sample_rate)
        self._buffer = bytearray()
        self._total_appended = 0
        self._created_at = time.monotonic()

    @property
    def capacity_bytes(self) -> int:
        return self.window_samples * BYTES_PER_SAMPLE

    def append(self, chunk: bytes) -> int:
        """Append a raw PCM16 chunk; returns how many bytes were kept."""
        if not chunk:
            return 0
        room = self.capacity_bytes - len(self._buffer)
        kept = chunk[: max(0, room)]
        self._buffer.extend(kept)
        self._total_appended += len(chunk)
        return len(kept)

    def duration_ms(self) -> float:
        return (len(self._buffer) // BYTES_PER_SAMPLE) * 1000.0 / self.sample_rate

    def is_full(self) -> bool:
        return len(self._buffer) >= self.capacity_bytes

    def is_empty(self) -> bool:
        return len(self._buffer) < BYTES_PER_SAMPLE

    def to_samples(self) -> np.ndarray:
        """Float32 samples in [-1, 1), padded to the full window."""
        usable = len(self._buffer) - (len(self._buffer) % BYTES_PER_SAMPLE)
        pcm = np.frombuffer(bytes(self._buffer[:usable]), dtype="<i2")
        return pad_or_trim(pcm.astype(np.float32) / 32768.0, self.window_samples)

    def clear(self) -> None:
        self._buffer.clear()

    def total_appended_bytes(self) -> int:
        """Total bytes ever appended, including dropped overflow (for stats)."""
        return self._total_appended

    def age_seconds(self) -> float:
        return time.monotonic() - self._created_at

