"""
Error taxonomy for the transcription pipeline.

Only MalformedVocabulary is fatal (raised at startup). The per-session errors
degrade to early termination with whatever transcript has accumulated.
"""


class TranscriptionError(Exception):
    """Base class for all pipeline errors."""


class MalformedVocabulary(TranscriptionError):
    """Vocabulary table is not a dense 0..V-1 id range."""


class SessionNotReady(TranscriptionError):
    """Decode engine used before encoded audio / prepare() is available."""


class InferenceFailure(TranscriptionError):
    """An external encoder, decoder or argmax call failed."""


class InvalidTokenIndex(TranscriptionError):
    """Token id outside the vocabulary range (skipped for display, still counted)."""

    def __init__(self, token_id: int, vocab_size: int):
        super().__init__(f"Token id {token_id} outside vocabulary range [0, {vocab_size})")
        self.token_id = token_id
        self.vocab_size = vocab_size


class DetokenizationError(TranscriptionError):
    """Fragment does not decode to valid UTF-8 (strict mode only)."""
