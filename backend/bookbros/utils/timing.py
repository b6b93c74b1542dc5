"""Timing helpers for slow-request debugging."""
import time
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


def now_ms() -> float:
    return time.perf_counter() * 1000


def log_elapsed(start_ms: float, label: str, log_fn: Optional[Callable[[str], None]] = None) -> float:
    """
    Log milliseconds since start_ms under `label` and return a fresh start.

        t = now_ms()
        t = log_elapsed(t, "load")
        t = log_elapsed(t, "model_call")
    """
    elapsed = now_ms() - start_ms
    (log_fn or logger.debug)(f"{label}: {elapsed:.2f}ms")
    return now_ms()
