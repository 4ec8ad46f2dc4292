"""
WebSocket server for /ws/transcribe.

- Client streams raw PCM16 (16 kHz mono) chunks as binary frames.
- Capture ends on a "stop"/"end"/"final" text frame, a full window, or after record_seconds.
- Then the session encodes and decodes; every step pushes {"type": "text_updated", "text": ...}.
- Final {"type": "completed", "result": {...}}.
- If a session is already running: {"type": "busy"} and close (the trigger is a no-op).
"""

import asyncio
import logging
from typing import Any, Callable, Dict

import numpy as np
from fastapi import WebSocket, WebSocketDisconnect

from streaming.audio_buffer import MAX_WINDOW_SECONDS, SAMPLE_RATE, PcmWindow
from streaming.session import TranscriptionSession

logger = logging.getLogger(__name__)

STOP_MESSAGES = ("end", "stop", "final")


def build_ws_transcribe_handler(
    get_session: Callable[[], TranscriptionSession],
    record_seconds: float = 5.0,
    window_seconds: float = MAX_WINDOW_SECONDS,
    sample_rate: int = SAMPLE_RATE,
) -> Callable:
    """
    Build the async WebSocket handler for /ws/transcribe.

    Args:
        get_session: Callable that returns the shared TranscriptionSession.
        record_seconds: Capture duration bound (seconds from the start of capture).
        window_seconds: Encoder window; audio past it is dropped.
        sample_rate: Sample rate of the client's PCM.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
    """

    async def handle_ws_transcribe(websocket: WebSocket) -> None:
        await websocket.accept()
        session = get_session()

        async def send(payload: Dict[str, Any]) -> None:
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                pass

        if session.is_active:
            await send({"type": "busy", "state": session.state.value})
            await websocket.close(code=1013)
            return

        window = PcmWindow(window_seconds=window_seconds, sample_rate=sample_rate)

        async def capture() -> np.ndarray:
            loop = asyncio.get_running_loop()
            deadline = loop.time() + record_seconds
            while not window.is_full():
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    data = await asyncio.wait_for(websocket.receive(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                if data.get("type") == "websocket.disconnect":
                    raise WebSocketDisconnect(code=data.get("code", 1000))
                msg = data.get("bytes")
                if msg is None:
                    text = data.get("text") or ""
                    if text.strip().lower() in STOP_MESSAGES:
                        break
                    continue
                window.append(msg)
            logger.info("Captured %.0f ms of audio in %.1f s", window.duration_ms(), window.age_seconds())
            return window.to_samples()

        async def on_text_updated(text: str) -> None:
            await send({"type": "text_updated", "text": text})

        try:
            result = await session.start_transcription(capture, on_text_updated=on_text_updated)
        except WebSocketDisconnect:
            logger.info("Client disconnected during capture")
            return
        finally:
            window.clear()

        if result is None:
            await send({"type": "busy", "state": session.state.value})
        else:
            await send({"type": "completed", "result": result.to_dict()})
        try:
            await websocket.close()
        except RuntimeError:
            pass

    return handle_ws_transcribe
