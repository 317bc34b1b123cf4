"""Exceptions raised by the evaluator."""

from typing import Any


class InvalidConfiguration(ValueError):
    """Raised before evaluation when workers, chunk size, backend or policy are invalid."""


class TransformFailure(RuntimeError):
    """A transform raised (or returned a non-materialized value) on one element.

    The arguments are forwarded to ``RuntimeError`` so the exception pickles
    cleanly across the loky process boundary.
    """

    def __init__(self, index: int, value: Any, reason: str) -> None:
        super().__init__(index, value, reason)
        self.index = index
        self.value = value
        self.reason = reason

    def __str__(self) -> str:
        return f"Transform failed on element {self.index} (value={self.value!r}): {self.reason}"


class IncompleteReduction(RuntimeError):
    """Raised when a reduction is finalized before every chunk reported."""
