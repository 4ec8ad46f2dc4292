"""
Autoregressive greedy decode engine.

Each step runs the decoder twice:
  1. full-context pass over the whole token sequence + encoded audio -> fresh key/value cache
  2. single-token pass over the pending token + that cache -> logits
then picks the argmax. The pending token (the one just consumed) is appended to
the sequence only after the pass, so the sequence always trails the pending
token by one generation.

The cache is recomputed from the full prefix every step (O(n) attention work per
token); nothing is carried between steps except the token ids.
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from core.detokenizer import Detokenizer
from core.errors import DetokenizationError, InferenceFailure, InvalidTokenIndex, SessionNotReady
from core.segmenter import SentenceSegmenter
from core.special_tokens import ENGLISH, TRANSCRIBE, SpecialTokens
from core.vocabulary import Vocabulary
from decoding.backend import ModelBackend
from decoding.kv_cache import KeyValueCache
from decoding.token_sequence import DEFAULT_MAX_TOKENS, TokenSequence

logger = logging.getLogger(__name__)


class EngineState(Enum):
    READY = "ready"
    STEPPING = "stepping"
    DONE = "done"


class TerminationReason(Enum):
    END_OF_TEXT = "end_of_text"
    BUDGET = "budget"
    INFERENCE_FAILURE = "inference_failure"
    CANCELLED = "cancelled"


@dataclass
class SessionContext:
    """All per-transcription decode state, owned by exactly one session."""
    encoded_audio: Any
    tokens: TokenSequence
    pending_token: Optional[int]
    cache: KeyValueCache = field(default_factory=KeyValueCache)
    segmenter: SentenceSegmenter = field(default_factory=SentenceSegmenter)
    raw_text: str = ""
    state: EngineState = EngineState.READY
    termination: Optional[TerminationReason] = None
    steps: int = 0
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def done(self) -> bool:
        return self.state is EngineState.DONE

    def render(self) -> str:
        return self.segmenter.render()

    def release(self) -> None:
        """Drop tensors; only the segmenter output stays readable."""
        self.encoded_audio = None
        self.cache.clear()


class DecodeStepEngine:
    """
    Args:
        backend: ModelBackend providing the decoder passes and argmax.
        vocabulary: id -> subword table for display.
        detokenizer: byte-level detokenizer (default Detokenizer()).
        special_tokens: end-of-text / start-of-transcript / no-timestamps ids.
        max_tokens: TokenSequence capacity; decoding stops at max_tokens - 1.
        language_token, task_token: prompt prefix slots 1 and 2.
    """

    def __init__(
        self,
        backend: ModelBackend,
        vocabulary: Vocabulary,
        detokenizer: Optional[Detokenizer] = None,
        special_tokens: Optional[SpecialTokens] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        language_token: int = ENGLISH,
        task_token: int = TRANSCRIBE,
    ):
        self.backend = backend
        self.vocabulary = vocabulary
        self.detokenizer = detokenizer or Detokenizer()
        self.special_tokens = special_tokens or SpecialTokens()
        self.max_tokens = max_tokens
        self.language_token = language_token
        self.task_token = task_token

    @property
    def prefix(self):
        return (self.special_tokens.start_of_transcript, self.language_token, self.task_token)

    def prepare(self, encoded_audio: Any) -> SessionContext:
        """Fresh context: 3-token prefix, pending = no-timestamps, empty cache and transcript."""
        if encoded_audio is None:
            raise SessionNotReady("No encoded audio; encode a recording before decoding")
        return SessionContext(
            encoded_audio=encoded_audio,
            tokens=TokenSequence(self.prefix, capacity=self.max_tokens),
            pending_token=self.special_tokens.no_time_stamps,
        )

    def step(self, context: Optional[SessionContext]) -> bool:
        """
        Run one decode step. Returns True while more steps are needed.

        Raises:
            SessionNotReady: no context / encoded audio.
            InferenceFailure: a backend call failed; context is already Done with the
                in-flight sentence flushed.
        """
        if context is None or (context.encoded_audio is None and not context.done):
            raise SessionNotReady("step() called before prepare()")
        if context.done:
            return False
        if context.cancelled:
            self._finish(context, TerminationReason.CANCELLED)
            return False
        if context.tokens.budget_exhausted():
            self._finish(context, TerminationReason.BUDGET)
            return False

        context.state = EngineState.STEPPING
        try:
            cache = self.backend.run_full_context_decoder(context.tokens.as_array(), context.encoded_audio)
            context.cache = cache
            logits = self.backend.run_single_token_decoder(context.pending_token, cache)
            next_token = int(self.backend.run_argmax(logits))
        except Exception as e:
            self._finish(context, TerminationReason.INFERENCE_FAILURE)
            if isinstance(e, InferenceFailure):
                raise
            raise InferenceFailure(f"Decode step {context.steps + 1} failed: {e}") from e

        if context.cancelled:
            context.pending_token = None
            self._finish(context, TerminationReason.CANCELLED)
            return False

        # Delayed append: fold in the token consumed by this pass, not the one just chosen.
        context.tokens.append(context.pending_token)
        context.pending_token = next_token
        context.steps += 1
        logger.debug("step %d: token %d (count %d)", context.steps, next_token, context.tokens.count)

        if next_token == self.special_tokens.end_of_text:
            self._finish(context, TerminationReason.END_OF_TEXT)
            return False

        self._emit(context, next_token)

        if context.tokens.budget_exhausted():
            self._finish(context, TerminationReason.BUDGET)
            return False
        return True

    def run(self, context: SessionContext, on_step: Optional[Callable[[str], None]] = None) -> str:
        """Step until Done (synchronously); on_step gets the rendered text after every step."""
        while True:
            more = self.step(context)
            if on_step:
                on_step(context.render())
            if not more:
                return context.render()

    def _emit(self, context: SessionContext, token_id: int) -> None:
        try:
            subword = self.vocabulary.lookup(token_id)
        except InvalidTokenIndex:
            logger.debug("Token %d has no vocabulary entry; not displayed", token_id)
            return
        try:
            piece = self.detokenizer.decode(subword)
        except DetokenizationError as e:
            logger.warning("Skipping token %d: %s", token_id, e)
            return
        context.raw_text += piece
        context.segmenter.feed(piece)

    def _finish(self, context: SessionContext, reason: TerminationReason) -> None:
        context.segmenter.flush()
        context.state = EngineState.DONE
        context.termination = reason
        logger.info(
            "Decoding finished (%s) after %d steps, %d tokens",
            reason.value, context.steps, context.tokens.count,
        )
