"""Tests for transforms and the eager-result contract."""

import math
import pickle

import pytest

from chunkmap.errors import InvalidConfiguration, TransformFailure
from chunkmap.transform import (
    IteratedSqrt,
    apply_transform,
    call_transform,
    ensure_materialized,
    make_input,
)


def _lazy_squares(x):
    return (x * x for _ in range(1))


class TestIteratedSqrt:
    def test_repeat_zero_is_identity(self) -> None:
        assert IteratedSqrt(0)(42.0) == 42.0

    def test_applies_sqrt_repeat_times(self) -> None:
        assert IteratedSqrt(2)(16.0) == 2.0

    def test_hundred_roots_converge_to_one(self) -> None:
        transform = IteratedSqrt(100)
        for x in (1.0, 2.0, 5000.0, 10000.0):
            assert math.isclose(transform(x), 1.0, rel_tol=1e-12)

    def test_negative_input_raises_domain_error(self) -> None:
        with pytest.raises(ValueError):
            IteratedSqrt(1)(-4.0)

    @pytest.mark.parametrize("bad", [-1, 1.0, True])
    def test_invalid_repeat_rejected(self, bad) -> None:
        with pytest.raises(InvalidConfiguration):
            IteratedSqrt(bad)

    def test_is_picklable(self) -> None:
        transform = IteratedSqrt(7)
        assert pickle.loads(pickle.dumps(transform)) == transform


class TestMakeInput:
    def test_values_equal_one_based_index(self) -> None:
        assert make_input(4) == (1.0, 2.0, 3.0, 4.0)

    def test_empty(self) -> None:
        assert make_input(0) == ()

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(InvalidConfiguration):
            make_input(-1)


class TestEagerContract:
    @pytest.mark.parametrize("value", [1, 2.5, 0.0])
    def test_real_numbers_accepted(self, value) -> None:
        assert ensure_materialized(value) == float(value)

    @pytest.mark.parametrize("value", [iter([1.0]), (x for x in [1.0]), [1.0], "1.0", None, 1j])
    def test_non_materialized_results_rejected(self, value) -> None:
        with pytest.raises(TypeError, match="fully evaluated"):
            ensure_materialized(value)

    def test_apply_transform_rejects_generator_result(self) -> None:
        with pytest.raises(TransformFailure, match="fully evaluated") as exc_info:
            apply_transform(_lazy_squares, 5, 3.0)
        assert exc_info.value.index == 5


class TestTransformFailure:
    def test_failure_names_element_index(self) -> None:
        with pytest.raises(TransformFailure) as exc_info:
            apply_transform(IteratedSqrt(1), 17, -1.0)

        failure = exc_info.value
        assert failure.index == 17
        assert failure.value == -1.0
        assert "ValueError" in failure.reason
        assert "element 17" in str(failure)
        assert isinstance(failure.__cause__, ValueError)

    def test_call_transform_returns_raw_result(self) -> None:
        assert call_transform(str, 0, 3) == "3"

    def test_failure_survives_pickling(self) -> None:
        failure = TransformFailure(3, -1.0, "ValueError: math domain error")
        restored = pickle.loads(pickle.dumps(failure))

        assert isinstance(restored, TransformFailure)
        assert restored.index == 3
        assert restored.value == -1.0
        assert str(restored) == str(failure)
