"""Tests for timing and progress utilities."""

import logging
import time

import pytest

from chunkmap.utils.perf_utils import time_stage
from chunkmap.utils.progress import ProgressLogger


def test_time_stage(caplog: pytest.LogCaptureFixture) -> None:
    """Test stage timing context manager."""
    caplog.set_level(logging.INFO)
    logger = logging.getLogger("test")

    with time_stage("test_stage", logger) as timer:
        time.sleep(0.01)

    assert "[stage:start] test_stage" in caplog.text
    assert "[stage:end] test_stage (" in caplog.text
    assert timer.elapsed is not None
    assert timer.elapsed >= 0.01


def test_time_stage_exception_handling(caplog: pytest.LogCaptureFixture) -> None:
    """Test that the stage end is logged and the exception re-raised."""
    caplog.set_level(logging.INFO)
    logger = logging.getLogger("test")

    with pytest.raises(ValueError, match="Test exception"):
        with time_stage("failing_stage", logger) as timer:
            raise ValueError("Test exception")

    assert "[stage:end] failing_stage" in caplog.text
    assert timer.elapsed is not None


class TestProgressLogger:
    def test_wrap_passes_items_through(self) -> None:
        progress = ProgressLogger(total=5, label="chunks")

        assert list(progress.wrap(iter(range(5)))) == [0, 1, 2, 3, 4]
        assert progress.count == 5

    def test_logs_every_step(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG)
        logger = logging.getLogger("test.progress")
        progress = ProgressLogger(total=10, label="chunks", step_every=5, secs_every=3600, logger=logger)

        list(progress.wrap(range(10)))

        lines = [r.getMessage() for r in caplog.records if r.name == "test.progress"]
        assert lines[0].startswith("chunks: 5/10")
        assert lines[1].startswith("chunks: 10/10")
        # final summary line
        assert lines[-1].startswith("chunks: 10/10")

    def test_unknown_total(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG)
        progress = ProgressLogger(total=None, label="items", logger=logging.getLogger("test.progress"))

        list(progress.wrap([1, 2]))

        assert "items: 2/?" in caplog.text
