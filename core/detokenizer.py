"""
Subword fragment -> display text.

Surrogate characters (code point > 256) are shifted back onto the bytes they
stand for, the string is read as Latin-1 bytes, and the bytes are decoded as UTF-8.
"""
from typing import Optional, Sequence

from core.errors import DetokenizationError
from core.vocabulary import build_byte_remap_table

SURROGATE_BASE = 256


class Detokenizer:
    """
    Args:
        remap_table: 256-entry byte remap table (default: build_byte_remap_table()).
        errors: "replace" (malformed UTF-8 becomes U+FFFD) or "strict" (raise DetokenizationError).
    """

    def __init__(self, remap_table: Optional[Sequence[int]] = None, errors: str = "replace"):
        if errors not in ("replace", "strict"):
            raise ValueError(f"errors must be 'replace' or 'strict', got {errors!r}")
        self.remap_table = tuple(remap_table) if remap_table is not None else build_byte_remap_table()
        self.errors = errors

    def shift_down(self, fragment: str) -> str:
        out = []
        for ch in fragment:
            cp = ord(ch)
            if cp <= SURROGATE_BASE:
                out.append(ch)
                continue
            index = cp - SURROGATE_BASE
            if index < len(self.remap_table):
                out.append(chr(self.remap_table[index]))
            else:
                # No byte behind it; Latin-1 encoding turns it into '?'
                out.append(ch)
        return "".join(out)

    def decode(self, fragment: str) -> str:
        raw = self.shift_down(fragment).encode("latin-1", errors="replace")
        try:
            return raw.decode("utf-8", errors=self.errors)
        except UnicodeDecodeError as e:
            raise DetokenizationError(f"Fragment {fragment!r} is not valid UTF-8: {e}") from e
