#!/usr/bin/env python3
"""Scenario matrix + chunk-size sweep benchmark.

Runs the default scheduling scenarios (sequential, parallel with one worker,
parallel with four workers, chunked parallel) and a chunk-size sweep, then
writes both tables under data/benchmarks/.
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from chunkmap.scenarios import format_report, run_scenarios, sweep_chunk_sizes
from chunkmap.utils.logging_utils import setup_logging
from chunkmap.utils.resource_monitor import get_system_info

DEFAULT_SWEEP = (1, 10, 25, 50, 100, 200, 500, 1000, 2500)


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark chunkmap scheduling scenarios")
    parser.add_argument("--size", type=int, default=10000)
    parser.add_argument("--repeat", type=int, default=100)
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--backend", choices=["loky", "threading"], default="loky")
    parser.add_argument("--outdir", default="data/benchmarks")
    parser.add_argument(
        "--chunk-sizes",
        type=int,
        nargs="+",
        default=list(DEFAULT_SWEEP),
        help="Chunk sizes to sweep",
    )
    args = parser.parse_args()

    setup_logging("WARNING")

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    print("Running scenario matrix...")
    scenarios = run_scenarios(size=args.size, repeat=args.repeat, backend=args.backend)
    print(format_report(scenarios))

    print("\nRunning chunk-size sweep...")
    sweep = sweep_chunk_sizes(
        args.chunk_sizes,
        size=args.size,
        repeat=args.repeat,
        workers=args.workers,
        backend=args.backend,
    )
    print(format_report(sweep))

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    scenarios.to_csv(outdir / f"scenarios_{stamp}.csv", index=False)
    sweep.to_csv(outdir / f"sweep_{stamp}.csv", index=False)

    timed = sweep.iloc[1:]
    best = timed.sort_values("elapsed_sec").iloc[0] if not timed.empty else None
    meta = {
        "run_at_utc": stamp,
        "size": args.size,
        "repeat": args.repeat,
        "workers": args.workers,
        "backend": args.backend,
        "system": get_system_info(),
        "best_chunk_size": None if best is None else int(best["chunk_size"]),
        "best_chunks": None if best is None else int(best["chunks"]),
    }
    with open(outdir / f"meta_{stamp}.json", "w") as f:
        json.dump(meta, f, indent=2)

    print(f"\nResults written to {outdir}")


if __name__ == "__main__":
    main()
