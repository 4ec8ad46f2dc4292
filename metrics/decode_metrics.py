"""
Decode observability metrics.

Thread-safe counters and step latency samples for transcription sessions.
Exposed via GET /metrics/decode (JSON snapshot).
Recorded by streaming.session for sessions, ignored triggers, failures and step timing.
"""

import threading
from collections import deque
from typing import Any, Dict

# ----- Shared state (module-level for singleton behavior) -----
_lock = threading.Lock()
_sessions_started = 0
_sessions_completed = 0
_ignored_triggers = 0
_inference_failures = 0
_terminations: Dict[str, int] = {}
_step_latency_samples: deque = deque(maxlen=1000)  # last N step durations (ms)
_tokens_per_session: deque = deque(maxlen=200)


def record_session_started() -> None:
    with _lock:
        global _sessions_started
        _sessions_started += 1


def record_session_completed(termination: str, token_count: int) -> None:
    """Call once per session with the termination reason value ("end_of_text", "budget", ...)."""
    with _lock:
        global _sessions_completed
        _sessions_completed += 1
        _terminations[termination] = _terminations.get(termination, 0) + 1
        _tokens_per_session.append(token_count)


def record_ignored_trigger() -> None:
    """Call when start is requested while a session is already active."""
    with _lock:
        global _ignored_triggers
        _ignored_triggers += 1


def record_inference_failure() -> None:
    with _lock:
        global _inference_failures
        _inference_failures += 1


def record_step_latency_ms(ms: float) -> None:
    with _lock:
        _step_latency_samples.append(ms)


def get_snapshot() -> Dict[str, Any]:
    """
    Return a JSON-serializable snapshot of decode metrics.
    Used by GET /metrics/decode.
    """
    with _lock:
        samples = list(_step_latency_samples)
        tokens = list(_tokens_per_session)
        snapshot = {
            "sessions_started": _sessions_started,
            "sessions_completed": _sessions_completed,
            "ignored_triggers": _ignored_triggers,
            "inference_failures": _inference_failures,
            "terminations": dict(_terminations),
        }
    n = len(samples)
    if n == 0:
        avg_step_ms = None
        p95_step_ms = None
    else:
        avg_step_ms = round(sum(samples) / n, 2)
        sorted_s = sorted(samples)
        idx = max(0, int(0.95 * n) - 1)
        p95_step_ms = round(sorted_s[idx], 2)
    snapshot.update({
        "avg_step_ms": avg_step_ms,
        "p95_step_ms": p95_step_ms,
        "step_sample_count": n,
        "avg_tokens_per_session": round(sum(tokens) / len(tokens), 2) if tokens else None,
    })
    return snapshot


def reset() -> None:
    """Zero all counters (tests, or an admin reset)."""
    global _sessions_started, _sessions_completed, _ignored_triggers, _inference_failures
    with _lock:
        _sessions_started = 0
        _sessions_completed = 0
        _ignored_triggers = 0
        _inference_failures = 0
        _terminations.clear()
        _step_latency_samples.clear()
        _tokens_per_session.clear()
