"""
Key/value cache hand-off between the two decoder passes.

The full-context pass produces 16 tensors named "present.{layer}.{decoder|encoder}.{key|value}";
the single-token pass consumes the same tensors as "past_key_values.{layer}...".
The cache is rebuilt from scratch every step and never carried over.
"""
from typing import Any, Dict, List, Mapping, Sequence, Tuple

NUM_LAYERS = 4
ATTENTION_KINDS = ("decoder", "encoder")  # self-attention, cross-attention
PRESENT_PREFIX = "present"
PAST_PREFIX = "past_key_values"


def tensor_names(prefix: str = PRESENT_PREFIX, num_layers: int = NUM_LAYERS) -> List[str]:
    names = []
    for layer in range(num_layers):
        for kind in ATTENTION_KINDS:
            names.append(f"{prefix}.{layer}.{kind}.key")
            names.append(f"{prefix}.{layer}.{kind}.value")
    return names


class KeyValueCache:
    """
    Holds one (key, value) pair per layer for decoder self-attention and one for
    encoder cross-attention. Tensors are opaque to this class.
    """

    def __init__(self, num_layers: int = NUM_LAYERS):
        self.num_layers = num_layers
        self._tensors: Dict[str, Any] = {}

    @classmethod
    def from_present(cls, outputs: Mapping[str, Any], num_layers: int = NUM_LAYERS) -> "KeyValueCache":
        """Collect the present.* outputs of the full-context pass. Raises ValueError if one is missing."""
        cache = cls(num_layers)
        missing = [n for n in tensor_names(PRESENT_PREFIX, num_layers) if n not in outputs]
        if missing:
            raise ValueError(f"Full-context pass did not produce {', '.join(missing)}")
        for name in tensor_names(PRESENT_PREFIX, num_layers):
            cache._tensors[name] = outputs[name]
        return cache

    @classmethod
    def from_layers(cls, layers: Sequence[Tuple[Any, Any, Any, Any]]) -> "KeyValueCache":
        """From per-layer (self_key, self_value, cross_key, cross_value) tuples."""
        flat = [tensor for layer in layers for tensor in layer]
        names = tensor_names(PRESENT_PREFIX, len(layers))
        if len(flat) != len(names):
            raise ValueError("Each layer needs (self_key, self_value, cross_key, cross_value)")
        return cls.from_present(dict(zip(names, flat)), num_layers=len(layers))

    def as_past_inputs(self) -> Dict[str, Any]:
        """Same tensors under the input names of the single-token pass."""
        return {
            PAST_PREFIX + name[len(PRESENT_PREFIX):]: tensor
            for name, tensor in self._tensors.items()
        }

    def past_layers(self) -> Tuple[Tuple[Any, Any, Any, Any], ...]:
        """past_key_values.* inputs regrouped per layer as (self_key, self_value, cross_key, cross_value)."""
        past = self.as_past_inputs()
        names = tensor_names(PAST_PREFIX, self.num_layers)
        return tuple(
            tuple(past[name] for name in names[i * 4:(i + 1) * 4])
            for i in range(self.num_layers)
        )

    def __len__(self) -> int:
        return len(self._tensors)

    @property
    def is_empty(self) -> bool:
        return not self._tensors

    def clear(self) -> None:
        self._tensors.clear()
