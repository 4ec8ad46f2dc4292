"""
Whisper backend on torch + transformers.

The decoder is driven in two passes per step, like the exported decoder pair
it mirrors: a full-context pass over the whole prefix that yields the
present key/values, then a single-token pass fed from those key/values.
"""
import logging
from typing import Any, Dict, Optional

import numpy as np
import torch
from transformers import WhisperFeatureExtractor, WhisperForConditionalGeneration, WhisperTokenizer
from transformers.cache_utils import EncoderDecoderCache

from decoding.backend import ModelBackend
from decoding.kv_cache import KeyValueCache

logger = logging.getLogger(__name__)


def _cache_layers(past: Any):
    """EncoderDecoderCache or legacy tuple -> per-layer (self_k, self_v, cross_k, cross_v)."""
    if hasattr(past, "to_legacy_cache"):
        past = past.to_legacy_cache()
    return [tuple(layer) for layer in past]


class WhisperBackend(ModelBackend):
    """
    Args:
        model_name: Hugging Face id or local path (e.g. openai/whisper-tiny).
        device: torch device string.
        sample_rate: Sample rate of the PCM given to extract_features.
    """

    def __init__(self, model_name: str, device: str = "cpu", sample_rate: int = 16000):
        self.model_name = model_name
        self.device = device
        self.sample_rate = sample_rate
        logger.info("Loading Whisper model %s on %s", model_name, device)
        self.model = WhisperForConditionalGeneration.from_pretrained(model_name).to(device)
        self.model.eval()
        self.feature_extractor = WhisperFeatureExtractor.from_pretrained(model_name)
        self.tokenizer = WhisperTokenizer.from_pretrained(model_name)
        self.num_layers = self.model.config.decoder_layers
        self._encoder_states: Optional[torch.Tensor] = None

    def vocabulary_table(self) -> Dict[str, int]:
        """Regular (non-special) subword -> id table of the tokenizer."""
        size = self.tokenizer.vocab_size
        return {tok: i for tok, i in self.tokenizer.get_vocab().items() if i < size}

    @torch.no_grad()
    def extract_features(self, pcm: np.ndarray) -> torch.Tensor:
        inputs = self.feature_extractor(pcm, sampling_rate=self.sample_rate, return_tensors="pt")
        return inputs.input_features.to(self.device)

    @torch.no_grad()
    def run_encoder(self, features: torch.Tensor) -> torch.Tensor:
        return self.model.model.encoder(input_features=features).last_hidden_state

    @torch.no_grad()
    def run_full_context_decoder(self, token_ids: np.ndarray, encoded_audio: torch.Tensor) -> KeyValueCache:
        input_ids = torch.as_tensor(token_ids, dtype=torch.long, device=self.device)
        out = self.model.model.decoder(
            input_ids=input_ids,
            encoder_hidden_states=encoded_audio,
            use_cache=True,
            return_dict=True,
        )
        # Decoder layers only take the cross-attention branch when encoder states are passed;
        # the key/values themselves come from the cache in the single-token pass.
        self._encoder_states = encoded_audio
        return KeyValueCache.from_layers(_cache_layers(out.past_key_values))

    @torch.no_grad()
    def run_single_token_decoder(self, token_id: int, cache: KeyValueCache) -> torch.Tensor:
        input_ids = torch.tensor([[token_id]], dtype=torch.long, device=self.device)
        past = EncoderDecoderCache.from_legacy_cache(cache.past_layers())
        out = self.model.model.decoder(
            input_ids=input_ids,
            encoder_hidden_states=self._encoder_states,
            past_key_values=past,
            use_cache=True,
            return_dict=True,
        )
        return self.model.proj_out(out.last_hidden_state)

    @torch.no_grad()
    def run_argmax(self, logits: torch.Tensor) -> int:
        # torch.argmax returns the first maximal index
        return int(torch.argmax(logits[0, -1], dim=-1).item())

    def close(self) -> None:
        self._encoder_states = None
        self.model = None
        if self.device.startswith("cuda"):
            torch.cuda.empty_cache()
