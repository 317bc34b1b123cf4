"""Partitioning of an input sequence into contiguous dispatch units.

A :class:`ChunkPlan` splits ``N`` elements into ``ceil(N / C)`` contiguous,
order-preserving chunks of at most ``C`` elements. How ``C`` is chosen is a
pluggable :class:`PartitionPolicy`: one chunk for everything, one chunk per
element, a fixed size, or an automatic size derived from the worker count.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

from chunkmap.errors import InvalidConfiguration

POLICY_NAMES = ("single", "unit", "fixed", "auto")
DEFAULT_CHUNKS_PER_WORKER = 4


def validate_chunk_size(chunk_size: Any) -> int:
    """Return *chunk_size* if it is an int >= 1, else raise InvalidConfiguration."""
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise InvalidConfiguration(f"Chunk size must be an int, got {chunk_size!r}")
    if chunk_size < 1:
        raise InvalidConfiguration(f"Chunk size must be >= 1, got {chunk_size}")
    return chunk_size


@dataclass(frozen=True)
class Chunk:
    """Half-open index range ``[start, stop)`` of the input sequence."""

    index: int
    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start

    def indices(self) -> range:
        return range(self.start, self.stop)


@dataclass(frozen=True)
class ChunkPlan:
    """Read-only partition of ``size`` elements into chunks of ``chunk_size``.

    Attributes:
        size: Number of elements in the input sequence
        chunk_size: Maximum elements per chunk
        chunks: Chunks in input order
        policy: Name of the policy that chose ``chunk_size``

    """

    size: int
    chunk_size: int
    chunks: tuple[Chunk, ...]
    policy: str = "fixed"

    @classmethod
    def build(cls, size: int, chunk_size: int, policy: str = "fixed") -> ChunkPlan:
        if size < 0:
            raise InvalidConfiguration(f"Input size must be >= 0, got {size}")
        validate_chunk_size(chunk_size)
        chunks = tuple(
            Chunk(index=i, start=start, stop=min(start + chunk_size, size))
            for i, start in enumerate(range(0, size, chunk_size))
        )
        return cls(size=size, chunk_size=chunk_size, chunks=chunks, policy=policy)

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks)

    def slices(self, values: Sequence[Any]) -> Iterator[tuple[Chunk, Sequence[Any]]]:
        """Yield each chunk with its slice of *values*."""
        if len(values) != self.size:
            raise ValueError(f"Plan covers {self.size} elements, got {len(values)}")
        for chunk in self.chunks:
            yield chunk, values[chunk.start : chunk.stop]


class PartitionPolicy:
    """Chooses the chunk size for an input of ``size`` elements and ``workers`` workers."""

    name = "base"

    def chunk_size_for(self, size: int, workers: int) -> int:
        raise NotImplementedError

    def plan(self, size: int, workers: int = 1) -> ChunkPlan:
        return ChunkPlan.build(size, self.chunk_size_for(size, workers), policy=self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SingleChunkPolicy(PartitionPolicy):
    """Whole input as one chunk."""

    name = "single"

    def chunk_size_for(self, size: int, workers: int) -> int:
        return max(size, 1)


class UnitChunkPolicy(PartitionPolicy):
    """Every element is its own dispatch unit."""

    name = "unit"

    def chunk_size_for(self, size: int, workers: int) -> int:
        return 1


class FixedSizeChunkPolicy(PartitionPolicy):
    name = "fixed"

    def __init__(self, chunk_size: int) -> None:
        self.chunk_size = validate_chunk_size(chunk_size)

    def chunk_size_for(self, size: int, workers: int) -> int:
        return self.chunk_size

    def __repr__(self) -> str:
        return f"FixedSizeChunkPolicy(chunk_size={self.chunk_size})"


class AutoChunkPolicy(PartitionPolicy):
    """Target ``chunks_per_worker`` chunks for each worker.

    A few chunks per worker keeps dispatch overhead low while leaving room to
    even out finish times.
    """

    name = "auto"

    def __init__(self, chunks_per_worker: int = DEFAULT_CHUNKS_PER_WORKER) -> None:
        if isinstance(chunks_per_worker, bool) or not isinstance(chunks_per_worker, int):
            raise InvalidConfiguration(
                f"chunks_per_worker must be an int, got {chunks_per_worker!r}",
            )
        if chunks_per_worker < 1:
            raise InvalidConfiguration(
                f"chunks_per_worker must be >= 1, got {chunks_per_worker}",
            )
        self.chunks_per_worker = chunks_per_worker

    def chunk_size_for(self, size: int, workers: int) -> int:
        target_chunks = max(workers, 1) * self.chunks_per_worker
        return max(1, math.ceil(size / target_chunks))

    def __repr__(self) -> str:
        return f"AutoChunkPolicy(chunks_per_worker={self.chunks_per_worker})"


def resolve_policy(
    chunk_size: Optional[int] = None,
    policy: Union[str, PartitionPolicy, None] = None,
    chunks_per_worker: int = DEFAULT_CHUNKS_PER_WORKER,
) -> PartitionPolicy:
    """Turn a chunk size and/or policy name into a :class:`PartitionPolicy`.

    With neither given the ``auto`` policy is used. A chunk size on its own
    selects the ``fixed`` policy.

    Raises:
        InvalidConfiguration: On an unknown policy name, a ``fixed`` policy
            without a chunk size, or a chunk size combined with a policy
            that ignores it

    """
    if chunk_size is not None:
        validate_chunk_size(chunk_size)

    if isinstance(policy, PartitionPolicy):
        if chunk_size is not None:
            raise InvalidConfiguration("Pass either a chunk size or a policy object, not both")
        return policy

    if policy is None:
        policy = "auto" if chunk_size is None else "fixed"

    name = str(policy).strip().lower()
    if name not in POLICY_NAMES:
        raise InvalidConfiguration(
            f"Unknown partition policy '{policy}'. Valid options are: {', '.join(POLICY_NAMES)}.",
        )

    if name == "fixed":
        if chunk_size is None:
            raise InvalidConfiguration("The fixed policy requires a chunk size")
        return FixedSizeChunkPolicy(chunk_size)

    if chunk_size is not None:
        raise InvalidConfiguration(f"The {name} policy does not take a chunk size")

    if name == "single":
        return SingleChunkPolicy()
    if name == "unit":
        return UnitChunkPolicy()
    return AutoChunkPolicy(chunks_per_worker)
