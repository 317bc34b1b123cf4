"""Chunked parallel map-reduce evaluation.
"""

from .errors import IncompleteReduction, InvalidConfiguration, TransformFailure
from .evaluator import (
    ChunkedParallelMapReduce,
    DispatchStats,
    EvaluationReport,
    create_evaluator,
    evaluate,
)
from .partition import (
    AutoChunkPolicy,
    Chunk,
    ChunkPlan,
    FixedSizeChunkPolicy,
    PartitionPolicy,
    SingleChunkPolicy,
    UnitChunkPolicy,
)
from .reduction import ChunkResult, ReductionAccumulator
from .transform import IteratedSqrt, make_input

__version__ = "0.1.0"

__all__ = [
    # Evaluation
    "ChunkedParallelMapReduce",
    "evaluate",
    "create_evaluator",
    "EvaluationReport",
    "DispatchStats",
    # Partitioning
    "Chunk",
    "ChunkPlan",
    "PartitionPolicy",
    "SingleChunkPolicy",
    "UnitChunkPolicy",
    "FixedSizeChunkPolicy",
    "AutoChunkPolicy",
    # Reduction
    "ChunkResult",
    "ReductionAccumulator",
    # Transforms
    "IteratedSqrt",
    "make_input",
    # Errors
    "InvalidConfiguration",
    "TransformFailure",
    "IncompleteReduction",
]
