"""Scheduling scenarios and the timing harness.

Each scenario is a worker count, a chunk size and optionally a backend. The
defaults reproduce the four runs of the experiment: no parallelism, every
element dispatched on one worker, every element dispatched on four workers,
and four workers over 100-element chunks.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional

import pandas as pd

from chunkmap.evaluator import ChunkedParallelMapReduce, EvaluationReport
from chunkmap.transform import IteratedSqrt, Transform, make_input
from chunkmap.utils.logging_utils import get_logger
from chunkmap.utils.perf_utils import time_stage

logger = get_logger(__name__)

REPORT_COLUMNS = [
    "scenario",
    "backend",
    "workers",
    "chunk_size",
    "chunks",
    "value",
    "elapsed_sec",
    "speedup",
    "overhead_fraction",
]


@dataclass(frozen=True)
class Scenario:
    """One scheduling configuration.

    Attributes:
        name: Short identifier used in reports
        workers: Worker count
        chunk_size: Elements per dispatch unit (None for automatic chunking)
        backend: Backend override (None uses the harness backend)
        description: Human-readable summary

    """

    name: str
    workers: int
    chunk_size: Optional[int] = None
    backend: Optional[str] = None
    description: str = ""


DEFAULT_SCENARIOS: tuple[Scenario, ...] = (
    Scenario("sequential", 1, None, backend="sequential", description="no parallelism"),
    Scenario("parallel-1", 1, 1, description="one dispatch unit per element, one worker"),
    Scenario("parallel-4", 4, 1, description="one dispatch unit per element, four workers"),
    Scenario("chunked-4", 4, 100, description="100-element chunks, four workers"),
)


def run_scenario(
    scenario: Scenario,
    values: Sequence[Any],
    transform: Transform,
    backend: str = "loky",
) -> EvaluationReport:
    """Run a single scenario and return its report."""
    evaluator = ChunkedParallelMapReduce(
        workers=scenario.workers,
        chunk_size=scenario.chunk_size,
        backend=scenario.backend or backend,
    )
    with time_stage(f"scenario:{scenario.name}", logger):
        return evaluator.evaluate_with_stats(values, transform)


def run_scenarios(
    size: int = 10000,
    repeat: int = 100,
    scenarios: Iterable[Scenario] = DEFAULT_SCENARIOS,
    backend: str = "loky",
) -> pd.DataFrame:
    """Run every scenario over ``1..size`` with the iterated square root.

    Speedup is relative to the first scenario, so list the baseline first.

    Returns:
        DataFrame with one row per scenario and columns REPORT_COLUMNS

    """
    values = make_input(size)
    transform = IteratedSqrt(repeat)

    rows = []
    for scenario in scenarios:
        report = run_scenario(scenario, values, transform, backend=backend)
        rows.append(
            {
                "scenario": scenario.name,
                "backend": report.stats.backend,
                "workers": scenario.workers,
                "chunk_size": report.plan.chunk_size,
                "chunks": len(report.plan),
                "value": report.value,
                "elapsed_sec": report.stats.wall_seconds,
                "overhead_fraction": report.stats.overhead_fraction,
            },
        )

    df = pd.DataFrame(rows, columns=[c for c in REPORT_COLUMNS if c != "speedup"])
    if df.empty:
        return df.reindex(columns=REPORT_COLUMNS)

    baseline = df["elapsed_sec"].iloc[0]
    df["speedup"] = baseline / df["elapsed_sec"].where(df["elapsed_sec"] > 0)
    return df[REPORT_COLUMNS]


def format_report(df: pd.DataFrame) -> str:
    """Render a scenario report as a fixed-width table."""
    return df.to_string(
        index=False,
        formatters={
            "value": "{:.6f}".format,
            "elapsed_sec": "{:.3f}".format,
            "speedup": "{:.2f}".format,
            "overhead_fraction": "{:.1%}".format,
        },
    )


def sweep_chunk_sizes(
    chunk_sizes: Iterable[int],
    size: int = 10000,
    repeat: int = 100,
    workers: int = 4,
    backend: str = "loky",
) -> pd.DataFrame:
    """Time one evaluation per chunk size at a fixed worker count.

    The best chunk size depends on the workload and the machine, so it is
    measured here rather than assumed. The first row is a sequential baseline.
    """
    scenarios = [Scenario("sequential", 1, None, backend="sequential")]
    scenarios.extend(Scenario(f"chunk-{c}", workers, c) for c in chunk_sizes)
    return run_scenarios(size=size, repeat=repeat, scenarios=scenarios, backend=backend)
