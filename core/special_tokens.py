"""
Whisper special token ids (see added_tokens.json of the multilingual checkpoints).
"""
from dataclasses import dataclass

END_OF_TEXT = 50257
START_OF_TRANSCRIPT = 50258
ENGLISH = 50259
GERMAN = 50261
FRENCH = 50265
TRANSLATE = 50358  # speech-to-text then translate to English
TRANSCRIBE = 50359  # speech-to-text in the given language
NO_TIME_STAMPS = 50363
START_TIME = 50364

LANGUAGE_TOKENS = {
    "english": ENGLISH,
    "german": GERMAN,
    "french": FRENCH,
}

TASK_TOKENS = {
    "transcribe": TRANSCRIBE,
    "translate": TRANSLATE,
}


@dataclass(frozen=True)
class SpecialTokens:
    """Ids the decode engine needs; overridable for small test vocabularies."""
    end_of_text: int = END_OF_TEXT
    start_of_transcript: int = START_OF_TRANSCRIPT
    no_time_stamps: int = NO_TIME_STAMPS
