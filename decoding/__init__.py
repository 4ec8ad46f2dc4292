"""
Greedy encoder/decoder decoding with an explicit two-pass key/value cache hand-off.

- token_sequence: fixed-capacity prompt + generated ids.
- kv_cache: the 16 present / past_key_values tensors.
- backend: model capability interface (whisper_backend has the torch implementation;
  import it separately to avoid pulling torch/transformers).
- engine: DecodeStepEngine and SessionContext.
"""

from decoding.backend import ModelBackend, greedy_token
from decoding.engine import DecodeStepEngine, EngineState, SessionContext, TerminationReason
from decoding.kv_cache import KeyValueCache
from decoding.token_sequence import DEFAULT_MAX_TOKENS, TokenSequence

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DecodeStepEngine",
    "EngineState",
    "KeyValueCache",
    "ModelBackend",
    "SessionContext",
    "TerminationReason",
    "TokenSequence",
    "greedy_token",
]
