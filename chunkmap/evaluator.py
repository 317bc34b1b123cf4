"""Chunked parallel map-reduce evaluation.

This module provides parallel execution using joblib: the input is split
into contiguous chunks by a partition policy, each chunk is one indivisible
dispatch unit evaluated sequentially by a worker, and chunk partial sums are
combined into a thread-safe accumulator in completion order.
"""

import os
import threading
import time
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from joblib import Parallel, delayed
from joblib.externals.loky import get_reusable_executor

from chunkmap.errors import InvalidConfiguration, TransformFailure
from chunkmap.partition import (
    DEFAULT_CHUNKS_PER_WORKER,
    ChunkPlan,
    PartitionPolicy,
    SingleChunkPolicy,
    resolve_policy,
)
from chunkmap.reduction import ChunkResult, ReductionAccumulator
from chunkmap.transform import Transform, apply_transform
from chunkmap.utils.io_utils import load_settings
from chunkmap.utils.logging_utils import get_logger
from chunkmap.utils.path_utils import get_config_path
from chunkmap.utils.progress import ProgressLogger
from chunkmap.utils.resource_monitor import (
    calculate_optimal_workers,
    monitor_parallel_execution,
)

logger = get_logger(__name__)

SUPPORTED_BACKENDS: Tuple[str, ...] = ("sequential", "threading", "loky")
DEFAULT_BACKEND = "loky"

# Cache for loky availability test
_LOKY_AVAILABLE: Optional[bool] = None


def validate_workers(workers: Any) -> int:
    """Return *workers* if it is an int >= 1, else raise InvalidConfiguration."""
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise InvalidConfiguration(f"Worker count must be an int, got {workers!r}")
    if workers < 1:
        raise InvalidConfiguration(f"Worker count must be >= 1, got {workers}")
    return workers


def _normalize_backend(backend: str) -> str:
    normalized = str(backend).strip().lower()
    if normalized not in SUPPORTED_BACKENDS:
        raise InvalidConfiguration(
            f"Unsupported backend '{backend}'. Valid options are: {', '.join(SUPPORTED_BACKENDS)}.",
        )
    return normalized


def is_loky_available() -> bool:
    """Test if loky backend is available and working.

    Returns:
        True if loky backend can be used, False otherwise

    """
    global _LOKY_AVAILABLE

    if _LOKY_AVAILABLE is not None:
        return _LOKY_AVAILABLE

    loky_works = False
    try:
        result = Parallel(n_jobs=2, backend="loky")(delayed(abs)(-1) for _ in range(2))
        loky_works = list(result) == [1, 1]
    except (OSError, RuntimeError, ImportError) as e:
        logger.debug(f"loky backend test failed: {e}")

    _LOKY_AVAILABLE = loky_works
    return _LOKY_AVAILABLE


def select_backend(requested: str) -> Tuple[str, str]:
    """Select the backend to run on.

    Args:
        requested: Requested backend ('sequential', 'threading' or 'loky')

    Returns:
        Tuple of (chosen_backend, reason)

    """
    requested = _normalize_backend(requested)

    if requested in ("sequential", "threading"):
        return requested, "requested"

    if is_loky_available():
        return "loky", "requested"
    return "threading", "fallback_unsupported"


def _worker_id() -> str:
    return f"pid{os.getpid()}/{threading.current_thread().name}"


def _run_chunk(
    transform: Transform,
    chunk_index: int,
    start: int,
    values: Sequence[Any],
) -> ChunkResult:
    """Transform one chunk sequentially and return its partial sum."""
    began = time.perf_counter()
    partial = 0.0
    for offset, value in enumerate(values):
        partial += apply_transform(transform, start + offset, value)
    return ChunkResult(
        chunk_index=chunk_index,
        partial=partial,
        elements=len(values),
        worker=_worker_id(),
        compute_seconds=time.perf_counter() - began,
    )


@dataclass
class DispatchStats:
    """Dispatch accounting for one evaluation.

    ``overhead_fraction`` is the share of worker capacity (wall time times
    worker count) not spent inside chunk loops: dispatch, pickling, result
    collection and idle time. It is measured per run.
    """

    backend: str
    workers: int
    policy: str
    chunk_size: int
    chunks_planned: int
    chunks_completed: int = 0
    elements: int = 0
    wall_seconds: float = 0.0
    compute_seconds: float = 0.0
    chunks_per_worker: Dict[str, int] = field(default_factory=dict)

    def record(self, result: ChunkResult) -> None:
        self.chunks_completed += 1
        self.elements += result.elements
        self.compute_seconds += result.compute_seconds
        self.chunks_per_worker[result.worker] = self.chunks_per_worker.get(result.worker, 0) + 1

    @property
    def workers_used(self) -> int:
        return len(self.chunks_per_worker)

    @property
    def overhead_fraction(self) -> float:
        capacity = self.wall_seconds * self.workers
        if capacity <= 0:
            return 0.0
        return min(1.0, max(0.0, 1.0 - self.compute_seconds / capacity))

    def log_summary(self) -> None:
        logger.info("=== Dispatch Summary ===")
        logger.info(f"Backend: {self.backend} | Workers: {self.workers} (used {self.workers_used})")
        logger.info(f"Policy: {self.policy} | Chunk size: {self.chunk_size}")
        logger.info(
            f"Dispatch units: created={self.chunks_planned}, consumed={self.chunks_completed}",
        )
        for worker, count in sorted(self.chunks_per_worker.items()):
            logger.info(f"  {worker}: {count} chunks")
        logger.info(
            f"Wall: {self.wall_seconds:.3f}s | Compute: {self.compute_seconds:.3f}s | "
            f"Overhead: {self.overhead_fraction:.1%}",
        )
        logger.info("========================")


@dataclass(frozen=True)
class EvaluationReport:
    value: float
    stats: DispatchStats
    plan: ChunkPlan


class ChunkedParallelMapReduce:
    """Apply a pure transform over an input sequence and sum the results.

    Configuration is validated up front: an invalid worker count, chunk
    size, backend or policy raises :class:`InvalidConfiguration` before any
    element is transformed.
    """

    def __init__(
        self,
        workers: int = 1,
        chunk_size: Optional[int] = None,
        backend: str = DEFAULT_BACKEND,
        policy: Union[str, PartitionPolicy, None] = None,
        chunks_per_worker: int = DEFAULT_CHUNKS_PER_WORKER,
    ) -> None:
        """Initialize the evaluator.

        Args:
            workers: Number of workers (>= 1)
            chunk_size: Elements per dispatch unit (None lets the policy decide)
            backend: 'sequential', 'threading' or 'loky'
            policy: Partition policy name or instance
            chunks_per_worker: Target chunks per worker for the auto policy

        """
        self.workers = validate_workers(workers)
        requested_backend = _normalize_backend(backend)

        if requested_backend == "sequential" and workers != 1:
            raise InvalidConfiguration(
                f"The sequential backend runs on exactly one worker, got {workers}",
            )
        if requested_backend == "sequential" and chunk_size is None and policy is None:
            policy = SingleChunkPolicy()

        self.policy = resolve_policy(chunk_size, policy, chunks_per_worker)
        self.requested_backend = requested_backend
        self.backend, self.backend_reason = select_backend(requested_backend)

        logger.info(
            f"Evaluator initialized | requested={requested_backend}, chosen={self.backend}, "
            f"reason={self.backend_reason}, workers={self.workers}, policy={self.policy!r}",
        )

    def plan(self, size: int) -> ChunkPlan:
        return self.policy.plan(size, self.workers)

    def _dispatch_single_worker(
        self,
        plan: ChunkPlan,
        values: Sequence[Any],
        transform: Transform,
    ) -> Iterator[ChunkResult]:
        """Send every chunk through a one-worker pool of the chosen backend."""
        if self.backend == "loky":
            executor = get_reusable_executor(max_workers=1)
            owned = False
        else:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chunkmap-worker")
            owned = True

        futures = [
            executor.submit(_run_chunk, transform, chunk.index, chunk.start, chunk_values)
            for chunk, chunk_values in plan.slices(values)
        ]
        try:
            for future in as_completed(futures):
                yield future.result()
        finally:
            for future in futures:
                future.cancel()
            if owned:
                executor.shutdown(wait=True)

    def _dispatch(
        self,
        plan: ChunkPlan,
        values: Sequence[Any],
        transform: Transform,
    ) -> Iterator[ChunkResult]:
        if self.backend == "sequential" or len(plan) == 0:
            for chunk, chunk_values in plan.slices(values):
                yield _run_chunk(transform, chunk.index, chunk.start, chunk_values)
            return

        monitor_parallel_execution(self.workers, "evaluate")

        if self.workers == 1:
            # joblib runs n_jobs=1 inline, so one worker needs its own pool
            yield from self._dispatch_single_worker(plan, values, transform)
            return

        # batch_size=1 keeps every chunk its own dispatch unit
        yield from Parallel(
            n_jobs=self.workers,
            backend=self.backend,
            batch_size=1,
            return_as="generator_unordered",
        )(
            delayed(_run_chunk)(transform, chunk.index, chunk.start, chunk_values)
            for chunk, chunk_values in plan.slices(values)
        )

    def evaluate_with_stats(
        self,
        values: Iterable[Any],
        transform: Transform,
    ) -> EvaluationReport:
        """Evaluate and return the sum together with dispatch statistics.

        Args:
            values: Input sequence (snapshotted into a tuple)
            transform: Pure per-element function

        Returns:
            EvaluationReport with the final sum, stats and the plan used

        Raises:
            TransformFailure: If the transform fails on any element

        """
        snapshot = values if isinstance(values, tuple) else tuple(values)
        plan = self.plan(len(snapshot))

        logger.info(
            f"Parallel plan: N={plan.size}, chunks={len(plan)}, chunk_size={plan.chunk_size}, "
            f"policy={plan.policy} (workers={self.workers}, backend={self.backend})",
        )

        stats = DispatchStats(
            backend=self.backend,
            workers=self.workers,
            policy=plan.policy,
            chunk_size=plan.chunk_size,
            chunks_planned=len(plan),
        )
        accumulator = ReductionAccumulator(len(plan))
        progress = ProgressLogger(total=len(plan), label="chunks", logger=logger)

        began = time.perf_counter()
        try:
            for result in progress.wrap(self._dispatch(plan, snapshot, transform)):
                accumulator.combine(result.chunk_index, result.partial)
                stats.record(result)
        except TransformFailure as e:
            logger.error(f"Evaluation aborted: {e}")
            raise
        stats.wall_seconds = time.perf_counter() - began

        value = accumulator.finalize()
        logger.info(
            f"Completed evaluation: {stats.chunks_completed} chunks, "
            f"{stats.elements} elements in {stats.wall_seconds:.3f}s",
        )
        return EvaluationReport(value=value, stats=stats, plan=plan)

    def evaluate(self, values: Iterable[Any], transform: Transform) -> float:
        """Apply *transform* to every element and return the sum."""
        return self.evaluate_with_stats(values, transform).value


def evaluate(
    values: Iterable[Any],
    transform: Transform,
    workers: int,
    chunk_size: Optional[int] = None,
    *,
    backend: str = DEFAULT_BACKEND,
    policy: Union[str, PartitionPolicy, None] = None,
) -> float:
    """Apply *transform* over *values* on *workers* workers and return the sum.

    Args:
        values: Input sequence
        transform: Pure per-element function
        workers: Number of workers (>= 1)
        chunk_size: Elements per dispatch unit (None for automatic chunking)
        backend: 'sequential', 'threading' or 'loky'
        policy: Optional partition policy name or instance

    Returns:
        Sum of the transformed elements

    """
    evaluator = ChunkedParallelMapReduce(
        workers=workers,
        chunk_size=chunk_size,
        backend=backend,
        policy=policy,
    )
    return evaluator.evaluate(values, transform)


def create_evaluator(
    workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
    backend: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> ChunkedParallelMapReduce:
    """Create an evaluator, filling unset values from settings.

    Args:
        workers: Number of workers (None for settings, then auto)
        chunk_size: Chunk size (None for settings, then automatic)
        backend: Backend (None for settings)
        settings: Loaded settings (None to read config/settings.yaml)

    Returns:
        Configured ChunkedParallelMapReduce instance

    """
    if settings is None:
        settings = load_settings(str(get_config_path()))
    parallelism = settings.get("parallelism", {})

    if backend is None:
        backend = parallelism.get("backend", DEFAULT_BACKEND)
    if chunk_size is None:
        chunk_size = parallelism.get("chunk_size")

    if str(backend).strip().lower() == "sequential":
        workers = 1 if workers is None else workers
    if workers is None:
        workers = parallelism.get("workers")
    if workers is None:
        workers = calculate_optimal_workers()

    return ChunkedParallelMapReduce(
        workers=workers,
        chunk_size=chunk_size,
        backend=backend,
        chunks_per_worker=parallelism.get("chunks_per_worker", DEFAULT_CHUNKS_PER_WORKER),
    )


def log_parallel_config(evaluator: ChunkedParallelMapReduce, input_size: int) -> None:
    """Log parallel execution configuration."""
    logger.info("=== Parallel Configuration ===")
    logger.info(f"Workers: {evaluator.workers}")
    logger.info(f"Backend: {evaluator.backend} (reason: {evaluator.backend_reason})")
    logger.info(f"Policy: {evaluator.policy!r}")
    logger.info(f"Input size: {input_size}")
    logger.info("==============================")
