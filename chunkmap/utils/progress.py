from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from typing import Optional, TypeVar

T = TypeVar("T")


class ProgressLogger:
    """Log throughput lines while a stream of completed units is consumed."""

    def __init__(
        self,
        total: Optional[int],
        label: str,
        step_every: int = 50,
        secs_every: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.total = total
        self.label = label
        self.step_every = max(1, step_every)
        self.secs_every = secs_every
        self.count = 0
        self._last_log_count = 0
        self._last_log_time = time.perf_counter()
        self._start = self._last_log_time
        self._logger = logger or logging.getLogger(__name__)

    def _should_log(self, i: int) -> bool:
        if i - self._last_log_count >= self.step_every:
            return True
        return time.perf_counter() - self._last_log_time >= self.secs_every

    def _fmt(self, i: int) -> str:
        elapsed = time.perf_counter() - self._start
        rate = i / elapsed if elapsed > 0 else 0.0
        eta = ""
        if self.total is not None and rate > 0:
            remaining = max(self.total - i, 0)
            eta = f" | eta={remaining / rate:,.2f}s"
        total = self.total if self.total is not None else "?"
        return f"{self.label}: {i:,}/{total} | {rate:,.0f}/s | elapsed={elapsed:,.2f}s{eta}"

    def wrap(self, it: Iterable[T]) -> Iterator[T]:
        for item in it:
            self.count += 1
            if self._should_log(self.count):
                self._logger.debug(self._fmt(self.count))
                self._last_log_count = self.count
                self._last_log_time = time.perf_counter()
            yield item
        self._logger.debug(self._fmt(self.count))
