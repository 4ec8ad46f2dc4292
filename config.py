"""
Production configuration via environment variables.
Load with python-dotenv; no hardcoded model paths or secrets.
"""
import os

from dotenv import load_dotenv

from core.special_tokens import LANGUAGE_TOKENS, TASK_TOKENS

load_dotenv()

# ----- Server -----
PORT = int(os.environ.get("PORT", "8001"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ----- Model -----
# Any Whisper checkpoint with the exported-decoder layout; tiny has 4 decoder layers
WHISPER_MODEL = os.environ.get("WHISPER_MODEL", "openai/whisper-tiny")

# vocab.json (subword -> id). Empty: take the vocabulary from the model's tokenizer.
VOCAB_PATH = os.environ.get("VOCAB_PATH", "")

# ----- Device -----
# auto | cuda | cpu
DEVICE = os.environ.get("DEVICE", "auto")
def resolve_device() -> str:
    if DEVICE != "auto":
        return DEVICE
    try:
        import torch
        return "cuda" if torch.cuda.is_available() else "cpu"
    except ImportError:
        return "cpu"

# ----- Decoding -----
MAX_TOKENS = int(os.environ.get("MAX_TOKENS", "100"))
LANGUAGE = os.environ.get("LANGUAGE", "english").lower()
TASK = os.environ.get("TASK", "transcribe").lower()

def get_language_token(name: str = None) -> int:
    """Prompt-prefix language id for english | german | french."""
    name = (name or LANGUAGE).lower()
    if name not in LANGUAGE_TOKENS:
        raise ValueError(f"Unknown LANGUAGE {name!r}; expected one of {sorted(LANGUAGE_TOKENS)}")
    return LANGUAGE_TOKENS[name]

def get_task_token(name: str = None) -> int:
    """Prompt-prefix task id for transcribe | translate (translate = to English)."""
    name = (name or TASK).lower()
    if name not in TASK_TOKENS:
        raise ValueError(f"Unknown TASK {name!r}; expected one of {sorted(TASK_TOKENS)}")
    return TASK_TOKENS[name]

# ----- Audio (Whisper expects 16 kHz; one window is at most 30 s) -----
SAMPLE_RATE = int(os.environ.get("SAMPLE_RATE", "16000"))
MAX_AUDIO_SECONDS = float(os.environ.get("MAX_AUDIO_SECONDS", "30"))
# Live capture over /ws/transcribe stops after this many seconds even without "stop"
RECORD_SECONDS = float(os.environ.get("RECORD_SECONDS", "5"))

# ----- Presentation -----
TRANSCRIPT_SLOTS = int(os.environ.get("TRANSCRIPT_SLOTS", "1"))
LISTENING_TEXT = os.environ.get("LISTENING_TEXT", "Listening...")

# ----- CORS (production: set to specific origins) -----
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
def get_cors_origins() -> list:
    """Return list of allowed CORS origins from env."""
    if CORS_ORIGINS == "*":
        return ["*"]
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
