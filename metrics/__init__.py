"""
Observability: decode session metrics.
"""

from metrics.decode_metrics import (
    get_snapshot,
    record_ignored_trigger,
    record_inference_failure,
    record_session_completed,
    record_session_started,
    record_step_latency_ms,
    reset,
)

__all__ = [
    "get_snapshot",
    "record_ignored_trigger",
    "record_inference_failure",
    "record_session_completed",
    "record_session_started",
    "record_step_latency_ms",
    "reset",
]
