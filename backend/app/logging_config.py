# backend/app/logging_config.py
import os
import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Union

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

log = logging.getLogger("vibe-agent")

MetricValue = Union[int, float]

# Agents update counters from worker threads (asyncio.to_thread).
_lock = threading.Lock()
_metrics: Dict[str, MetricValue] = {}


def inc_metric(name: str, amount: int = 1) -> None:
    with _lock:
        _metrics[name] = int(_metrics.get(name, 0)) + amount


def set_metric(name: str, value: MetricValue) -> None:
    with _lock:
        _metrics[name] = value


def get_metrics_snapshot() -> Dict[str, MetricValue]:
    with _lock:
        return dict(_metrics)


def reset_metrics() -> None:
    with _lock:
        _metrics.clear()


def record_fallback(stage: str, reason: object) -> None:
    """Log a fallback substitution and count it under ``fallback_<stage>``."""
    log.warning(f"📝 {stage}: using fallback ({reason})")
    inc_metric(f"fallback_{stage}")


@contextmanager
def measure(stage: str) -> Iterator[None]:
    """
    Time a pipeline stage.

    Stores the last duration as ``time_ms_last_<stage>`` and counts
    exceptions leaving the block as ``failures_<stage>`` before re-raising.
    """
    start = time.perf_counter()
    try:
        yield
    except Exception:
        inc_metric(f"failures_{stage}")
        raise
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.info(f"⏱️ {stage} took {elapsed_ms:.1f}ms")
        set_metric(f"time_ms_last_{stage}", round(elapsed_ms, 1))
