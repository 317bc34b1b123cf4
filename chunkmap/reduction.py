"""Order-independent combination of per-chunk partial sums."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from chunkmap.errors import IncompleteReduction


@dataclass(frozen=True)
class ChunkResult:
    """What a worker reports after transforming one chunk.

    Attributes:
        chunk_index: Position of the chunk in its plan
        partial: Sum of the chunk's transformed elements, in input order
        elements: Number of elements transformed
        worker: Identifier of the process/thread that ran the chunk
        compute_seconds: Time spent inside the chunk loop

    """

    chunk_index: int
    partial: float
    elements: int
    worker: str
    compute_seconds: float


class ReductionAccumulator:
    """Thread-safe running sum over a known number of chunks.

    Each chunk contributes exactly once; :meth:`finalize` refuses to return a
    value while any chunk is still missing.
    """

    def __init__(self, expected_chunks: int) -> None:
        if expected_chunks < 0:
            raise ValueError(f"expected_chunks must be >= 0, got {expected_chunks}")
        self.expected_chunks = expected_chunks
        self._value = 0.0
        self._seen: set[int] = set()
        self._lock = threading.Lock()

    def combine(self, chunk_index: int, partial: float) -> None:
        with self._lock:
            if not 0 <= chunk_index < self.expected_chunks:
                raise ValueError(
                    f"Chunk index {chunk_index} outside plan of {self.expected_chunks} chunks",
                )
            if chunk_index in self._seen:
                raise ValueError(f"Chunk {chunk_index} combined twice")
            self._seen.add(chunk_index)
            self._value += partial

    @property
    def completed(self) -> int:
        with self._lock:
            return len(self._seen)

    @property
    def value(self) -> float:
        """Current running sum (possibly partial)."""
        with self._lock:
            return self._value

    def missing(self) -> list[int]:
        with self._lock:
            return sorted(set(range(self.expected_chunks)) - self._seen)

    def finalize(self) -> float:
        """Return the final sum once every chunk has been combined."""
        missing = self.missing()
        if missing:
            preview = ", ".join(str(i) for i in missing[:10])
            raise IncompleteReduction(
                f"{len(missing)} of {self.expected_chunks} chunks never reported (first: {preview})",
            )
        return self.value
