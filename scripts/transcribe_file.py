#!/usr/bin/env python3
"""
Transcribe one audio file locally (no server) and print the bullets as they grow.

Usage:
  python scripts/transcribe_file.py clip.wav
  python scripts/transcribe_file.py clip.wav --model openai/whisper-tiny --language german --task translate
  VOCAB_PATH=vocab.json python scripts/transcribe_file.py clip.wav --max-tokens 60
"""
import argparse
import asyncio
import logging
import os
import sys

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from core.vocabulary import Vocabulary, load_vocabulary_file
from decoding.engine import DecodeStepEngine
from decoding.whisper_backend import WhisperBackend
from streaming.audio_loader import load_audio_clip
from streaming.session import TranscriptionSession


def main():
    parser = argparse.ArgumentParser(description="Transcribe an audio file into bullet sentences")
    parser.add_argument("audio", help="Path to an audio file (first 30 s are used)")
    parser.add_argument("--model", default=config.WHISPER_MODEL, help="Whisper model id or path")
    parser.add_argument("--vocab", default=config.VOCAB_PATH, help="vocab.json (default: model tokenizer)")
    parser.add_argument("--language", default=config.LANGUAGE, help="english | german | french")
    parser.add_argument("--task", default=config.TASK, help="transcribe | translate")
    parser.add_argument("--max-tokens", type=int, default=config.MAX_TOKENS)
    parser.add_argument("--device", default=config.resolve_device())
    parser.add_argument("--verbose", action="store_true", help="Log every decode step")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, stream=sys.stderr)

    if not os.path.isfile(args.audio):
        print(f"Error: {args.audio} not found.", file=sys.stderr)
        sys.exit(1)

    backend = WhisperBackend(args.model, device=args.device, sample_rate=config.SAMPLE_RATE)
    vocabulary = load_vocabulary_file(args.vocab) if args.vocab else Vocabulary.load(backend.vocabulary_table())
    engine = DecodeStepEngine(
        backend,
        vocabulary,
        max_tokens=args.max_tokens,
        language_token=config.get_language_token(args.language),
        task_token=config.get_task_token(args.task),
    )

    def show(text: str) -> None:
        print("\033[2J\033[H" + text, flush=True)

    session = TranscriptionSession(backend, engine, on_text_updated=show, listening_text="Loading audio...")

    async def capture():
        return load_audio_clip(args.audio, config.SAMPLE_RATE, config.MAX_AUDIO_SECONDS)

    try:
        result = asyncio.run(session.start_transcription(capture))
    finally:
        backend.close()
    print()
    print(f"[{result.termination}] {result.steps} steps, {result.token_count} tokens")
    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
