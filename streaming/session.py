"""
Transcription session: capture -> encode -> decode loop -> completed.

One session runs at a time. A start request while a session is capturing,
encoding or decoding is ignored (logged, counted), not queued. Blocking model
calls run in the default executor, one future per call chain, so the event
loop stays free for the presentation layer between steps.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import numpy as np

from core.errors import InferenceFailure
from decoding.backend import ModelBackend
from decoding.engine import DecodeStepEngine, SessionContext, TerminationReason

logger = logging.getLogger(__name__)

TextSink = Callable[[str], Any]
CaptureFn = Callable[[], Awaitable[np.ndarray]]


class SessionState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    ENCODING = "encoding"
    DECODING = "decoding"
    COMPLETED = "completed"


ACTIVE_STATES = (SessionState.CAPTURING, SessionState.ENCODING, SessionState.DECODING)
# Metrics termination for a session ended by an exception from capture or a sink
ABORTED = "aborted"


@dataclass
class SessionResult:
    """What survives a session: the final render and a few counters."""
    text: str
    raw_text: str
    token_count: int
    steps: int
    termination: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TranscriptionSession:
    """
    Args:
        backend: ModelBackend used for feature extraction and encoding.
        engine: DecodeStepEngine sharing the same backend.
        on_text_updated: Sink called (sync or async) with the rendered bullets after
            every step and at termination; also gets the listening text on capture start.
        inference_lock: Optional threading lock held around every model call.
        listening_text: Status text pushed when capture starts.
        metrics: Optional module with record_session_started/completed, record_ignored_trigger,
            record_inference_failure, record_step_latency_ms.
    """

    def __init__(
        self,
        backend: ModelBackend,
        engine: DecodeStepEngine,
        on_text_updated: Optional[TextSink] = None,
        inference_lock: Optional[Any] = None,
        listening_text: str = "Listening...",
        metrics: Optional[Any] = None,
    ):
        self.backend = backend
        self.engine = engine
        self.on_text_updated = on_text_updated
        self.inference_lock = inference_lock
        self.listening_text = listening_text
        self.metrics = metrics
        self._state = SessionState.IDLE
        self._context: Optional[SessionContext] = None
        self._cancel_requested = False
        self._call_sink: Optional[TextSink] = None
        self.last_result: Optional[SessionResult] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in ACTIVE_STATES

    def render(self) -> str:
        """Transcript so far (live session) or the last final render."""
        context = self._context
        if context is not None:
            return context.render()
        return self.last_result.text if self.last_result else ""

    def cancel(self) -> bool:
        """Ask the active session to stop; decoding ends before the next append."""
        if not self.is_active:
            return False
        self._cancel_requested = True
        if self._context is not None:
            self._context.cancel()
        return True

    async def start_transcription(
        self,
        capture: CaptureFn,
        on_text_updated: Optional[TextSink] = None,
    ) -> Optional[SessionResult]:
        """
        Run one full transcription. `capture` is awaited for the float32 16 kHz window;
        `on_text_updated` is an extra sink for this run only (e.g. one WebSocket client).

        Returns the SessionResult, or None if a session was already active.
        """
        if self.is_active:
            logger.info("Transcription already in progress (%s); ignoring trigger", self._state.value)
            self._record("record_ignored_trigger")
            return None

        # Claimed before the first await, so a second trigger in the same loop sees it.
        self._state = SessionState.CAPTURING
        self._cancel_requested = False
        self._context = None
        self.last_result = None
        self._call_sink = on_text_updated
        self._record("record_session_started")
        logger.info("Transcription started")
        result: Optional[SessionResult] = None
        try:
            await self._notify(self.listening_text)
            pcm = await capture()
            if self._cancel_requested:
                result = self._result(None, TerminationReason.CANCELLED)
            else:
                result = await self._encode_and_decode(pcm)
        except Exception:
            self._record("record_session_completed", ABORTED, 0)
            raise
        finally:
            # Final text is published before the live context goes away.
            if result is not None:
                self.last_result = result
            if self._context is not None:
                self._context.release()
            self._context = None
            self._call_sink = None
            self._state = SessionState.COMPLETED

        self._record("record_session_completed", result.termination, result.token_count)
        logger.info("Transcription completed (%s): %d bullets", result.termination, len(result.text.splitlines()))
        return result

    async def _encode_and_decode(self, pcm: np.ndarray) -> SessionResult:
        loop = asyncio.get_running_loop()

        self._state = SessionState.ENCODING
        try:
            encoded = await self._run_blocking(
                loop, lambda: self.backend.run_encoder(self.backend.extract_features(pcm))
            )
        except Exception as e:
            logger.exception("Encoding failed")
            self._record("record_inference_failure")
            await self._notify("")
            return self._result(None, TerminationReason.INFERENCE_FAILURE, error=str(e))
        if encoded is None:
            logger.error("Encoder returned no output")
            self._record("record_inference_failure")
            await self._notify("")
            return self._result(None, TerminationReason.INFERENCE_FAILURE, error="Encoder returned no output")

        if self._cancel_requested:
            return self._result(None, TerminationReason.CANCELLED)

        self._state = SessionState.DECODING
        context = self.engine.prepare(encoded)
        self._context = context
        error = None
        while True:
            t0 = time.perf_counter()
            try:
                more = await self._run_blocking(loop, lambda: self.engine.step(context))
            except InferenceFailure as e:
                logger.exception("Decoding stopped early")
                self._record("record_inference_failure")
                error = str(e)
                more = False
            self._record("record_step_latency_ms", (time.perf_counter() - t0) * 1000)
            await self._notify(context.render())
            if not more:
                break
        return self._result(context, context.termination, error=error)

    async def _run_blocking(self, loop: asyncio.AbstractEventLoop, fn: Callable[[], Any]) -> Any:
        lock = self.inference_lock
        if lock is None:
            return await loop.run_in_executor(None, fn)

        def locked():
            with lock:
                return fn()

        return await loop.run_in_executor(None, locked)

    async def _notify(self, text: str) -> None:
        for sink in (self.on_text_updated, self._call_sink):
            if sink is None:
                continue
            out = sink(text)
            if inspect.isawaitable(out):
                await out

    def _result(
        self,
        context: Optional[SessionContext],
        termination: Optional[TerminationReason],
        error: Optional[str] = None,
    ) -> SessionResult:
        reason = (termination or TerminationReason.INFERENCE_FAILURE).value
        if context is None:
            return SessionResult(text="", raw_text="", token_count=0, steps=0, termination=reason, error=error)
        return SessionResult(
            text=context.render(),
            raw_text=context.raw_text,
            token_count=context.tokens.count,
            steps=context.steps,
            termination=reason,
            error=error,
        )

    def _record(self, name: str, *args: Any) -> None:
        if self.metrics is not None and hasattr(self.metrics, name):
            getattr(self.metrics, name)(*args)
