import json

import pytest

from cellsearch.cli import main, parse_args
from cellsearch.io.capture import CaptureMode
from cellsearch.search.dedup import DEDUP_DISTANCE_HZ
from cellsearch.util.exit_codes import ExitCode


@pytest.fixture(autouse=True)
def _no_env_backend(monkeypatch):
    monkeypatch.delenv("CELLSEARCH_BACKEND", raising=False)
    monkeypatch.delenv("CELLSEARCH_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CELLSEARCH_DEBUG", raising=False)


def _argv(*extra: str) -> list:
    return ["--backend", "phy_fakes:EmptyBackend", *extra]


def test_defaults_follow_start_frequency() -> None:
    args = parse_args(_argv("-s", "806e6"))
    config = args.config
    assert config.freq_end == 806e6
    assert config.ppm == 100.0
    assert config.correction == 1.0
    assert config.mode is CaptureMode.LIVE
    assert config.dedup_distance_hz == DEDUP_DISTANCE_HZ
    assert config.log_level == "INFO"
    assert args.config_warnings == []


def test_frequencies_are_rounded_to_raster_with_warning() -> None:
    args = parse_args(_argv("-s", "806.04e6", "-e", "807.06e6"))
    assert args.config.freq_start == 806e6
    assert args.config.freq_end == 807.1e6
    assert len(args.config_warnings) == 2


def test_half_raster_step_rounds_up() -> None:
    args = parse_args(_argv("-s", "800.05e6", "-e", "800.25e6"))
    assert args.config.freq_start == 800.1e6
    assert args.config.freq_end == 800.3e6


def test_verbosity_flags_map_to_log_levels() -> None:
    assert parse_args(_argv("-s", "806e6", "-v")).config.log_level == "DEBUG"
    assert parse_args(_argv("-s", "806e6", "-b")).config.log_level == "WARNING"
    assert parse_args(_argv("-s", "806e6", "--log-level", "error")).config.log_level == "ERROR"


def test_load_mode_and_options() -> None:
    args = parse_args(_argv("-s", "806e6", "-l", "-d", "/tmp/caps", "--workers", "3", "--gain", "28.5"))
    assert args.config.mode is CaptureMode.LOAD
    assert args.config.data_dir == "/tmp/caps"
    assert args.config.workers == 3
    assert args.config.gain == 28.5


def test_high_ppm_and_odd_correction_warn() -> None:
    args = parse_args(_argv("-s", "806e6", "-p", "250", "-c", "1.01"))
    assert len(args.config_warnings) == 2


@pytest.mark.parametrize(
    "extra",
    [
        ("-s", "0.5e6"),
        ("-s", "806e6", "-e", "805e6"),
        ("-s", "806e6", "-p", "-1"),
        ("-s", "806e6", "-r", "-l"),
        ("-s", "806e6", "--workers", "0"),
    ],
)
def test_invalid_parameters_exit_with_usage_error(extra) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args(_argv(*extra))
    assert excinfo.value.code == ExitCode.INVALID_ARGS


def test_backend_is_required() -> None:
    with pytest.raises(SystemExit):
        parse_args(["-s", "806e6"])


def test_backend_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CELLSEARCH_BACKEND", "phy_fakes:EmptyBackend")
    assert parse_args(["-s", "806e6"]).config.backend == "phy_fakes:EmptyBackend"


def test_main_reports_no_cells_from_recordings(tmp_path, capsys) -> None:
    code = main(_argv("-s", "806e6", "-e", "806.1e6", "-p", "10", "-l", "-d", str(tmp_path), "-b"))
    assert code == ExitCode.SUCCESS
    assert "No LTE cells were found..." in capsys.readouterr().out


def test_main_emits_json(tmp_path, capsys) -> None:
    code = main(_argv("-s", "806e6", "-l", "-d", str(tmp_path), "-b", "--json"))
    assert code == ExitCode.SUCCESS
    payload = json.loads(capsys.readouterr().out)
    assert payload["cells"] == []
    assert payload["skipped_frequencies"] == [806e6]


def test_unknown_backend_exit_code(tmp_path) -> None:
    code = main(["--backend", "phy_fakes:Nope", "-s", "806e6", "-l", "-d", str(tmp_path), "-b"])
    assert code == ExitCode.BACKEND_ERROR
