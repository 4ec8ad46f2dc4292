"""
Bulleted speech transcription API.
Capture: uploaded clip (POST /transcribe) or live PCM over WebSocket (/ws/transcribe).
Encode: Whisper encoder over one fixed 30 s window.
Decode: greedy two-pass decoder loop; every token is detokenized and segmented into bullet sentences.
"""
import asyncio
import logging
import os
import shutil
import threading
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

import config
from core.detokenizer import Detokenizer
from core.special_tokens import SpecialTokens
from core.vocabulary import Vocabulary, load_vocabulary_file
from decoding.engine import DecodeStepEngine
from decoding.whisper_backend import WhisperBackend
from metrics import decode_metrics
from streaming.audio_loader import load_audio_clip
from streaming.session import TranscriptionSession
from streaming.transcript_slots import TranscriptSlots
from streaming.websocket_server import build_ws_transcribe_handler

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("main")

inference_lock = threading.Lock()

# Model selection from env
_device = config.resolve_device()
logger.info("Loading transcription engines...")
backend = WhisperBackend(config.WHISPER_MODEL, device=_device, sample_rate=config.SAMPLE_RATE)
# MalformedVocabulary here is fatal: no tokenizer, no service
if config.VOCAB_PATH:
    vocabulary = load_vocabulary_file(config.VOCAB_PATH)
else:
    vocabulary = Vocabulary.load(backend.vocabulary_table())
engine = DecodeStepEngine(
    backend,
    vocabulary,
    detokenizer=Detokenizer(),
    special_tokens=SpecialTokens(),
    max_tokens=config.MAX_TOKENS,
    language_token=config.get_language_token(),
    task_token=config.get_task_token(),
)
slots = TranscriptSlots(config.TRANSCRIPT_SLOTS)
session = TranscriptionSession(
    backend,
    engine,
    on_text_updated=slots.update,
    inference_lock=inference_lock,
    listening_text=config.LISTENING_TEXT,
    metrics=decode_metrics,
)
logger.info("Ready: %s on %s, %d vocabulary tokens", config.WHISPER_MODEL, _device, len(vocabulary))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    session.cancel()
    backend.close()


app = FastAPI(title="Bulleted Transcription API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def health_check():
    return {
        "status": "ok",
        "model": config.WHISPER_MODEL,
        "vocabulary_size": len(vocabulary),
        "session_state": session.state.value,
    }


@app.post("/transcribe")
async def transcribe(audio: UploadFile = File(...)):
    """Transcribe an uploaded clip (first 30 s). 409 while another transcription runs."""
    if session.is_active:
        raise HTTPException(status_code=409, detail="Transcription already in progress")

    temp_filename = f"temp_transcribe_{uuid.uuid4().hex}_{os.path.basename(audio.filename or 'audio')}"
    try:
        with open(temp_filename, "wb") as buffer:
            shutil.copyfileobj(audio.file, buffer)

        async def capture():
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(
                    None,
                    lambda: load_audio_clip(temp_filename, config.SAMPLE_RATE, config.MAX_AUDIO_SECONDS),
                )
            except Exception as e:
                raise HTTPException(status_code=400, detail=f"Cannot read audio: {e}") from e

        result = await session.start_transcription(capture)
        if result is None:
            raise HTTPException(status_code=409, detail="Transcription already in progress")
        return result.to_dict()
    finally:
        if os.path.exists(temp_filename):
            try:
                os.remove(temp_filename)
            except OSError:
                logger.warning("Could not remove %s", temp_filename)


@app.post("/transcribe/cancel")
def cancel_transcription():
    return {"cancelled": session.cancel(), "state": session.state.value}


@app.get("/transcript")
def get_transcript():
    """Rendered bullets per slot, plus the live text of a running session."""
    return {
        "state": session.state.value,
        "active_slot": slots.active_slot,
        "slots": slots.snapshot(),
        "live": session.render(),
        "last_result": session.last_result.to_dict() if session.last_result else None,
    }


@app.put("/slots/active")
def set_active_slot(index: int = Query(..., description="Slot that receives the next text updates")):
    try:
        slots.active_slot = index
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"active_slot": slots.active_slot}


_ws_transcribe_handler = build_ws_transcribe_handler(
    get_session=lambda: session,
    record_seconds=config.RECORD_SECONDS,
    window_seconds=config.MAX_AUDIO_SECONDS,
    sample_rate=config.SAMPLE_RATE,
)
app.websocket("/ws/transcribe")(_ws_transcribe_handler)


@app.get("/metrics/decode", include_in_schema=False)
def metrics_decode():
    """JSON snapshot: sessions, ignored triggers, inference failures, terminations, step latency."""
    return decode_metrics.get_snapshot()


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
