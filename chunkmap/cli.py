"""Command-line entry point.

Prints the reduced sum of the iterated square root over ``1..N`` as a single
line on stdout. Diagnostics go to the log on stderr.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from chunkmap.errors import InvalidConfiguration, TransformFailure
from chunkmap.evaluator import SUPPORTED_BACKENDS, create_evaluator, log_parallel_config
from chunkmap.scenarios import format_report, run_scenarios
from chunkmap.transform import IteratedSqrt, make_input
from chunkmap.utils.io_utils import load_settings
from chunkmap.utils.logging_utils import get_logger, setup_logging
from chunkmap.utils.path_utils import get_config_path

logger = get_logger(__name__)

EXIT_TRANSFORM_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chunkmap",
        description="Sum an iterated square root over 1..N with chunked parallel evaluation",
    )
    parser.add_argument(
        "--size",
        "-N",
        type=int,
        default=None,
        help="Input size N (default: experiment.size from settings, 10000)",
    )
    parser.add_argument(
        "--repeat",
        "-n",
        type=int,
        default=None,
        help="Square roots applied per element (default: experiment.repeat, 100)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of parallel workers (default: settings, else auto-detection)",
    )
    parser.add_argument(
        "--chunk-size",
        "-c",
        type=int,
        default=None,
        help="Elements per dispatch unit (default: chosen from the worker count)",
    )
    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        default=None,
        help="Execution backend (loky=processes, threading=threads, sequential=no dispatch)",
    )
    parser.add_argument(
        "--config",
        default=str(get_config_path()),
        help="Configuration file path",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Log dispatch statistics (chunks created/consumed, per-worker counts, overhead)",
    )
    parser.add_argument(
        "--scenarios",
        action="store_true",
        help=(
            "Run the scenario matrix and print a timing table instead of a single sum; "
            "each scenario fixes its own workers and chunk size"
        ),
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: logging.level from settings)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    log_settings = settings.get("logging", {})
    setup_logging(args.log_level or log_settings.get("level", "INFO"), log_settings.get("format"))

    experiment = settings.get("experiment", {})
    size = args.size if args.size is not None else experiment.get("size", 10000)
    repeat = args.repeat if args.repeat is not None else experiment.get("repeat", 100)

    try:
        values = make_input(size)
        transform = IteratedSqrt(repeat)

        if args.scenarios:
            if args.workers is not None or args.chunk_size is not None:
                parser.error("--scenarios fixes workers and chunk size per scenario; drop --workers/--chunk-size")
            backend = args.backend or settings.get("parallelism", {}).get("backend", "loky")
            if backend == "sequential":
                parser.error("--scenarios needs a parallel backend (loky or threading)")
            report = run_scenarios(size=size, repeat=repeat, backend=backend)
            print(format_report(report))
            return 0

        evaluator = create_evaluator(
            workers=args.workers,
            chunk_size=args.chunk_size,
            backend=args.backend,
            settings=settings,
        )
    except InvalidConfiguration as e:
        parser.error(str(e))

    log_parallel_config(evaluator, len(values))

    try:
        result = evaluator.evaluate_with_stats(values, transform)
    except TransformFailure as e:
        logger.error(f"Evaluation failed: {e}")
        return EXIT_TRANSFORM_FAILURE

    if args.stats:
        result.stats.log_summary()

    print(result.value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
