#!/usr/bin/env python3
"""cellsearch CLI entrypoint: blind LTE cell search over a band of center frequencies."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from cellsearch.io.report import format_json, format_table
from cellsearch.phy.backend import load_backend
from cellsearch.search.config import SearchConfig
from cellsearch.search.dedup import DEDUP_DISTANCE_HZ
from cellsearch.search.runner import CellSearchRunner
from cellsearch.util.errors import BackendError, ConfigurationError, DeviceError
from cellsearch.util.exit_codes import ExitCode
from cellsearch.util.logging import configure_logging, get_logger, resolve_level
from cellsearch.util.scan_logger import ScanLogger

EPILOG = """\
'c' is the correction factor to apply and indicates that if the desired center
frequency is fc, the radio should be instructed to tune to frequency fc*c so
that its true frequency shall be fc. 'ppm' is the remaining frequency error of
the crystal.

Upon initial search the default values for ppm and c should be used. The
program reports a 'c' value per detected cell that can be used in the future;
after a reliable c value has been determined, ppm can be reduced to 10.
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cellsearch",
        description="Search for LTE cells across a range of center frequencies",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-s", "--freq-start", dest="freq_start", type=float, required=True, help="Frequency where cell search should start [Hz]")
    p.add_argument("-e", "--freq-end", dest="freq_end", type=float, default=None, help="Frequency where cell search should end [Hz] (default: start)")
    p.add_argument("-p", "--ppm", type=float, default=100.0, help="Crystal remaining PPM error (default 100)")
    p.add_argument("-c", "--correction", type=float, default=1.0, help="Crystal correction factor (default 1.0)")
    p.add_argument("-r", "--record", action="store_true", help="Save captured data in capbuf_NNNN.npy files")
    p.add_argument("-l", "--load", action="store_true", help="Use data in capbuf_NNNN.npy files instead of live data")
    p.add_argument("-d", "--data-dir", dest="data_dir", default=".", help="Directory where capbuf_NNNN.npy files are located")

    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Increase status messages from program")
    verbosity.add_argument("-b", "--brief", action="store_true", help="Reduce status messages from program")
    verbosity.add_argument("--log-level", dest="log_level", default=None, help="Explicit log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--log-json-file", dest="log_json_file", default=None, help="Also write log records as JSON lines to this path")
    p.add_argument("--jsonl", default=None, help="Emit structured search events as line-delimited JSON to this path")
    p.add_argument("--json", action="store_true", help="Print the final result as JSON instead of a table")

    p.add_argument("--backend", default=None, help="PHY backend as 'package.module:attr' (default $CELLSEARCH_BACKEND)")
    p.add_argument("--driver", default="rtlsdr_native", help="'rtlsdr_native' for pyrtlsdr or a Soapy driver key (default rtlsdr_native)")
    p.add_argument("--soapy-args", dest="soapy_args", default=None, help="Comma-separated Soapy device args (e.g., 'serial=00000001')")
    p.add_argument("--gain", default="auto", help='Gain in dB or "auto" (default auto)')
    p.add_argument("--workers", type=int, default=1, help="Center frequencies searched in parallel (default 1)")
    p.add_argument(
        "--dedup-distance-hz",
        dest="dedup_distance_hz",
        type=float,
        default=DEDUP_DISTANCE_HZ,
        help="Detections of one cell ID closer than this are merged (default %(default)g)",
    )
    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]
    p = build_parser()
    args = p.parse_args(argv)

    if args.verbose:
        args.log_level = "DEBUG"
    elif args.brief:
        args.log_level = "WARNING"
    else:
        args.log_level = resolve_level(args.log_level)

    try:
        config = SearchConfig.from_args(args)
        config.validate()
        warnings = config.normalize()
        config.validate()
    except ConfigurationError as exc:
        p.error(str(exc))
    if not config.backend:
        p.error("--backend (or CELLSEARCH_BACKEND) is required")
    args.config = config
    args.config_warnings = warnings
    return args


def run(args: argparse.Namespace) -> int:
    config: SearchConfig = args.config
    configure_logging(level=config.log_level, json_file=getattr(args, "log_json_file", None))
    logger = get_logger(__name__)
    for warning in getattr(args, "config_warnings", []):
        logger.warning(warning)

    if config.freq_start == config.freq_end:
        logger.info("Search frequency: %g MHz", config.freq_start / 1e6)
    else:
        logger.info("Search frequency range: %g-%g MHz", config.freq_start / 1e6, config.freq_end / 1e6)
    logger.info("PPM: %g  correction: %.20g  mode: %s", config.ppm, config.correction, config.mode.value)

    try:
        backend = load_backend(config.backend)
    except BackendError as exc:
        logger.error("%s", exc)
        return ExitCode.BACKEND_ERROR

    scan_logger = ScanLogger.from_path(config.jsonl)
    try:
        result = CellSearchRunner(config, backend, scan_logger=scan_logger).run()
    except DeviceError as exc:
        logger.error("%s", exc)
        return ExitCode.DEVICE_UNAVAILABLE

    print(format_json(result) if args.json else format_table(result), flush=True)
    return ExitCode.SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
