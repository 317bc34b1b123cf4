"""Timing helpers for the evaluator and the scenario harness."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional


class StageTimer:
    """Holds the wall-clock duration of a timed stage once it exits."""

    def __init__(self) -> None:
        self.start: float = time.perf_counter()
        self.elapsed: Optional[float] = None


@contextmanager
def time_stage(stage: str, logger: logging.Logger) -> Iterator[StageTimer]:
    """Context manager for timing a stage.

    Args:
        stage: Stage name for logging
        logger: Logger instance

    Yields:
        StageTimer whose ``elapsed`` is filled in on exit

    """
    timer = StageTimer()
    logger.info(f"[stage:start] {stage}")
    try:
        yield timer
    finally:
        timer.elapsed = time.perf_counter() - timer.start
        logger.info(f"[stage:end] {stage} ({timer.elapsed:.3f}s)")
