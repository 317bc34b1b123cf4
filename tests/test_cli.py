"""Tests for the chunkmap command line."""

from typing import Any
from unittest.mock import patch

import pytest

from chunkmap.cli import EXIT_TRANSFORM_FAILURE, build_parser, main


def _run(missing_config: str, *args: str) -> int:
    return main([*args, "--config", missing_config])


class TestParser:
    def test_defaults_left_to_settings(self) -> None:
        args = build_parser().parse_args([])

        assert args.size is None
        assert args.repeat is None
        assert args.workers is None
        assert args.chunk_size is None
        assert args.backend is None
        assert not args.stats
        assert not args.scenarios

    def test_short_flags(self) -> None:
        args = build_parser().parse_args(["-N", "50", "-n", "3", "-w", "2", "-c", "5"])

        assert (args.size, args.repeat, args.workers, args.chunk_size) == (50, 3, 2, 5)

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--backend", "dask"])
        assert exc_info.value.code == 2


class TestMain:
    """End-to-end runs of main() with built-in default settings."""

    def test_prints_single_sum(self, missing_config: str, capsys: Any) -> None:
        code = _run(
            missing_config,
            "--size", "100", "--repeat", "100",
            "--backend", "threading", "--workers", "2", "--chunk-size", "7",
        )

        assert code == 0
        out = capsys.readouterr().out
        assert out.strip().splitlines() == [out.strip()]
        assert float(out) == pytest.approx(100.0, rel=1e-6)

    def test_sequential_backend(self, missing_config: str, capsys: Any) -> None:
        code = _run(missing_config, "--size", "100", "--repeat", "1", "--backend", "sequential")

        assert code == 0
        assert float(capsys.readouterr().out) == pytest.approx(
            sum(i**0.5 for i in range(1, 101)), rel=1e-9,
        )

    def test_stats_logged(self, missing_config: str, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("INFO")
        code = _run(
            missing_config,
            "--size", "40", "--repeat", "2",
            "--backend", "threading", "--workers", "2", "--chunk-size", "10", "--stats",
        )

        assert code == 0
        assert "Dispatch units: created=4, consumed=4" in caplog.text

    @pytest.mark.parametrize(
        "args",
        [
            ["--workers", "0", "--backend", "threading"],
            ["--chunk-size", "0", "--backend", "threading", "--workers", "2"],
            ["--backend", "sequential", "--workers", "4"],
            ["--size", "-3", "--backend", "threading", "--workers", "2"],
            ["--repeat", "-1", "--backend", "threading", "--workers", "2"],
        ],
    )
    def test_invalid_configuration_exits_2(self, missing_config: str, args: list) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run(missing_config, *args)
        assert exc_info.value.code == 2

    def test_transform_failure_exit_code(self, missing_config: str, capsys: Any) -> None:
        with patch("chunkmap.cli.make_input", return_value=(1.0, -1.0)):
            code = _run(missing_config, "--backend", "threading", "--workers", "2", "--chunk-size", "1")

        assert code == EXIT_TRANSFORM_FAILURE
        assert capsys.readouterr().out == ""

    def test_scenarios_table(self, missing_config: str, capsys: Any) -> None:
        code = _run(missing_config, "--scenarios", "--size", "200", "--repeat", "5", "--backend", "threading")

        assert code == 0
        out = capsys.readouterr().out
        for name in ("sequential", "parallel-1", "parallel-4", "chunked-4"):
            assert name in out

    def test_scenarios_need_parallel_backend(self, missing_config: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run(missing_config, "--scenarios", "--backend", "sequential")
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("extra", [["--workers", "2"], ["--chunk-size", "10"]])
    def test_scenarios_reject_worker_and_chunk_flags(self, missing_config: str, extra: list) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run(missing_config, "--scenarios", "--backend", "threading", *extra)
        assert exc_info.value.code == 2

    def test_unknown_log_level_in_settings(self, tmp_path: Any, capsys: Any) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text(
            "parallelism:\n"
            "  backend: sequential\n"
            "experiment:\n"
            "  size: 10\n"
            "  repeat: 0\n"
            "logging:\n"
            "  level: VERBOSE\n",
        )

        assert main(["--config", str(config)]) == 0
        assert float(capsys.readouterr().out) == pytest.approx(55.0)

    def test_settings_file_supplies_defaults(self, tmp_path: Any, capsys: Any) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text(
            "parallelism:\n"
            "  backend: threading\n"
            "  workers: 2\n"
            "  chunk_size: 25\n"
            "experiment:\n"
            "  size: 50\n"
            "  repeat: 0\n",
        )

        code = main(["--config", str(config)])

        assert code == 0
        assert float(capsys.readouterr().out) == pytest.approx(sum(range(1, 51)))
