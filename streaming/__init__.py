"""
Capture and session layer around the decode engine.

- audio_buffer: Fixed 30 s PCM window for one recording.
- session: TranscriptionSession state machine (capture -> encode -> decode -> completed).
- transcript_slots: Presentation targets for rendered text.
- audio_loader: librosa clip loading (import separately to avoid pulling librosa).
- websocket_server: WebSocket handler for /ws/transcribe (import separately to avoid pulling FastAPI).
"""

from streaming.audio_buffer import PcmWindow, bytes_to_duration_ms, duration_ms_to_bytes, pad_or_trim
from streaming.session import SessionResult, SessionState, TranscriptionSession
from streaming.transcript_slots import TranscriptSlots

__all__ = [
    "PcmWindow",
    "SessionResult",
    "SessionState",
    "TranscriptSlots",
    "TranscriptionSession",
    "bytes_to_duration_ms",
    "duration_ms_to_bytes",
    "pad_or_trim",
]
