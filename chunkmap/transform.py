"""Per-element transforms and the eager-result contract.

A transform is any picklable callable ``f(x) -> number`` with no side effects
and no dependency on call order. Results must be fully evaluated numbers by the
time they reach the reduction; generators, iterators and other deferred values
are rejected so that no work leaks out of the map phase.
"""

import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable

from chunkmap.errors import InvalidConfiguration, TransformFailure

Transform = Callable[[Any], Any]
InputSequence = tuple


@dataclass(frozen=True)
class IteratedSqrt:
    """Apply ``math.sqrt`` ``repeat`` times in sequence.

    This is the calibration workload: for any positive input the result tends
    to 1.0, so summing it over ``1..N`` gives roughly ``N``.
    """

    repeat: int = 100

    def __post_init__(self) -> None:
        if isinstance(self.repeat, bool) or not isinstance(self.repeat, int):
            raise InvalidConfiguration(f"repeat must be an int, got {self.repeat!r}")
        if self.repeat < 0:
            raise InvalidConfiguration(f"repeat must be >= 0, got {self.repeat}")

    def __call__(self, x: float) -> float:
        y = float(x)
        for _ in range(self.repeat):
            y = math.sqrt(y)
        return y


def make_input(size: int) -> InputSequence:
    """Return the input sequence ``(1.0, 2.0, ..., float(size))``."""
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise InvalidConfiguration(f"Input size must be an int >= 0, got {size!r}")
    return tuple(float(i) for i in range(1, size + 1))


def ensure_materialized(result: Any) -> float:
    """Return *result* as a float, rejecting anything that is not a real number."""
    if isinstance(result, numbers.Real):
        return float(result)
    raise TypeError(
        f"Transform returned {type(result).__name__}; results must be fully evaluated real numbers",
    )


def call_transform(transform: Transform, index: int, value: Any) -> Any:
    """Call *transform* on one element, naming the element index on failure.

    Args:
        transform: Per-element function
        index: Zero-based position of *value* in the input sequence
        value: The element

    Returns:
        The transform's result, unchecked

    Raises:
        TransformFailure: If the transform raises

    """
    try:
        return transform(value)
    except Exception as exc:
        raise TransformFailure(index, value, f"{type(exc).__name__}: {exc}") from exc


def apply_transform(transform: Transform, index: int, value: Any) -> float:
    """Call *transform* on one element and enforce the eager-result contract."""
    result = call_transform(transform, index, value)
    try:
        return ensure_materialized(result)
    except TypeError as exc:
        raise TransformFailure(index, value, str(exc)) from exc
