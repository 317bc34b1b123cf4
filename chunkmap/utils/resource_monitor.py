"""Resource monitoring utilities for the evaluator.

This module provides CPU and memory discovery with automatic worker
count adjustment based on available resources.
"""

import os
from typing import Any

import psutil

from chunkmap.utils.logging_utils import get_logger

logger = get_logger(__name__)

GB = 1024**3


def get_cpu_count() -> int:
    """Return the number of usable CPUs (at least 1)."""
    return os.cpu_count() or 1


def get_system_info() -> dict[str, Any]:
    """Get basic system information."""
    info: dict[str, Any] = {"cpu_count": get_cpu_count()}

    try:
        memory = psutil.virtual_memory()
        info.update(
            {
                "total_memory_gb": memory.total / GB,
                "available_memory_gb": memory.available / GB,
                "memory_percent": memory.percent,
            },
        )
    except psutil.Error as e:
        logger.warning(f"Failed to get system info with psutil: {e}")

    return info


def estimate_memory_per_worker() -> float:
    """Estimate memory usage per worker process in GB.

    A loky worker re-imports this package and holds one chunk at a time,
    so the current process RSS is a reasonable upper bound.
    """
    try:
        rss = float(psutil.Process().memory_info().rss) / GB
    except psutil.Error as e:
        logger.warning(f"Failed to estimate worker memory: {e}")
        return 0.5

    return max(rss, 0.05)


def calculate_optimal_workers(memory_cap_percent: float = 75.0) -> int:
    """Calculate a worker count from available CPUs and memory.

    Used only when neither the caller nor the settings name a worker count;
    explicit counts are honoured as given so scenarios stay reproducible.

    Args:
        memory_cap_percent: Maximum memory usage percentage (default 75%)

    Returns:
        Worker count, never below 1

    """
    cpu_count = get_cpu_count()
    default_workers = max(1, cpu_count - 1)

    try:
        total_memory_gb = psutil.virtual_memory().total / GB
    except psutil.Error as e:
        logger.warning(f"Failed to calculate optimal workers: {e}")
        return default_workers

    memory_per_worker = estimate_memory_per_worker()
    memory_cap_gb = total_memory_gb * (memory_cap_percent / 100.0)
    memory_limited_workers = max(1, int(memory_cap_gb / memory_per_worker))

    optimal_workers = min(default_workers, memory_limited_workers)

    logger.info(
        f"Resource analysis: CPU={cpu_count}, "
        f"Memory={total_memory_gb:.1f}GB, "
        f"Memory/worker={memory_per_worker:.2f}GB, "
        f"Memory-limited={memory_limited_workers}, "
        f"Optimal={optimal_workers}",
    )

    return optimal_workers


def get_memory_usage() -> dict:
    """Get current memory usage statistics."""
    try:
        memory = psutil.virtual_memory()
        process_memory = psutil.Process().memory_info()
    except psutil.Error as e:
        return {"error": str(e)}

    return {
        "total_gb": memory.total / GB,
        "available_gb": memory.available / GB,
        "used_gb": memory.used / GB,
        "percent": memory.percent,
        "process_rss_gb": process_memory.rss / GB,
    }


def monitor_parallel_execution(worker_count: int, operation_name: str) -> None:
    """Log expected resource usage before a parallel run.

    Args:
        worker_count: Number of workers being used
        operation_name: Name of the operation being monitored

    """
    logger.info(f"=== Parallel Execution Monitor: {operation_name} ===")
    logger.info(f"Workers: {worker_count} / CPUs: {get_cpu_count()}")

    memory_info = get_memory_usage()

    if "error" not in memory_info:
        estimated_total_memory = estimate_memory_per_worker() * worker_count
        memory_percent = (estimated_total_memory / memory_info["total_gb"]) * 100

        logger.info(
            f"Estimated total memory usage: {estimated_total_memory:.2f}GB ({memory_percent:.1f}%)",
        )

        if memory_percent > 75:
            logger.warning(f"High estimated memory usage: {memory_percent:.1f}%")

    if worker_count > get_cpu_count():
        logger.warning(
            f"Worker count {worker_count} exceeds CPU count {get_cpu_count()}; expect contention",
        )

    logger.info("==========================================")
