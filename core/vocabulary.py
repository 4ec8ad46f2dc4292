"""
Subword vocabulary (id -> string) and the byte remap table of the byte-level BPE.

GPT-2 style tokenizers replace the bytes that are not "visible" (control bytes,
space, DEL, the Latin-1 gap) with printable surrogate characters starting at
U+0100. The remap table inverts that: surrogate index n maps back to the n-th
non-visible byte.
"""
import json
import logging
from typing import List, Mapping, Tuple

from core.errors import InvalidTokenIndex, MalformedVocabulary

logger = logging.getLogger(__name__)

BYTE_REMAP_SIZE = 256

# Visible ranges kept as-is by the encoder: '!'..'~', '¡'..'¬', '®'..'ÿ'
VISIBLE_RANGES: Tuple[Tuple[int, int], ...] = (
    (ord("!"), ord("~")),
    (ord("¡"), ord("¬")),
    (ord("®"), ord("ÿ")),
)


def is_visible_byte(value: int) -> bool:
    return any(lo <= value <= hi for lo, hi in VISIBLE_RANGES)


def build_byte_remap_table() -> Tuple[int, ...]:
    """
    Enumerate byte values 0..255 in order and give every non-visible byte the
    next free slot. Unused slots stay 0.
    """
    table = [0] * BYTE_REMAP_SIZE
    n = 0
    for value in range(BYTE_REMAP_SIZE):
        if not is_visible_byte(value):
            table[n] = value
            n += 1
    return tuple(table)


class Vocabulary:
    """Immutable id -> subword table with dense ids 0..V-1."""

    def __init__(self, tokens: List[str]):
        self._tokens = tuple(tokens)

    @classmethod
    def load(cls, table: Mapping[str, int]) -> "Vocabulary":
        """
        Build from a subword -> id table.

        Raises:
            MalformedVocabulary: ids are not integers, repeat, or leave gaps in [0, V).
        """
        size = len(table)
        tokens: List[str] = [None] * size  # type: ignore[list-item]
        for subword, token_id in table.items():
            if not isinstance(token_id, int) or isinstance(token_id, bool):
                raise MalformedVocabulary(f"Id for {subword!r} is not an integer: {token_id!r}")
            if token_id < 0 or token_id >= size:
                raise MalformedVocabulary(f"Id {token_id} for {subword!r} outside [0, {size})")
            if tokens[token_id] is not None:
                raise MalformedVocabulary(f"Id {token_id} assigned twice ({tokens[token_id]!r}, {subword!r})")
            tokens[token_id] = subword
        return cls(tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def contains(self, token_id: int) -> bool:
        return 0 <= token_id < len(self._tokens)

    def lookup(self, token_id: int) -> str:
        if not self.contains(token_id):
            raise InvalidTokenIndex(token_id, len(self._tokens))
        return self._tokens[token_id]


def load_vocabulary_file(path: str) -> Vocabulary:
    """Load a vocab.json (subword -> id) file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise MalformedVocabulary(f"Cannot read vocabulary {path}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedVocabulary(f"Vocabulary {path} must be a JSON object of subword -> id")
    vocab = Vocabulary.load(data)
    logger.info("Loaded vocabulary from %s (%d tokens)", path, len(vocab))
    return vocab

