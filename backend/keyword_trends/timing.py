"""
Timing Utilities for Latency Instrumentation

Logs how long each forecast step takes, in the same ``[TIMING]`` format
across the service layer and the routers.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional


def log_timing(step_name: str, action: str, duration_ms: Optional[float] = None):
    """Log a timing event in standard format."""
    if duration_ms is not None:
        print(f"[TIMING] {step_name}: {action} - duration={duration_ms:.0f}ms")
    else:
        print(f"[TIMING] {step_name}: {action}")


def elapsed_ms(start: float) -> float:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return (time.perf_counter() - start) * 1000


@asynccontextmanager
async def async_timer(step_name: str, action: str = "OPERATION"):
    """Async context manager that logs START and END with the duration."""
    log_timing(step_name, f"{action} START")
    start = time.perf_counter()
    try:
        yield
    finally:
        log_timing(step_name, f"{action} END", elapsed_ms(start))
