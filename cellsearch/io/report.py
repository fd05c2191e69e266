"""Render search results as a fixed-width table or as JSON."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from cellsearch.search.types import CpType, DetectedCell, PhichDuration, PhichResource, SearchResult
from cellsearch.util.math import db10

_CP_CODES = {CpType.NORMAL: "N", CpType.EXTENDED: "E", CpType.UNKNOWN: "U"}
_PHICH_DURATION_CODES = {PhichDuration.NORMAL: "N", PhichDuration.EXTENDED: "E", PhichDuration.UNKNOWN: "U"}
_PHICH_RESOURCE_CODES = {
    PhichResource.UNKNOWN: "UNK",
    PhichResource.ONE_SIXTH: "1/6",
    PhichResource.HALF: "1/2",
    PhichResource.ONE: "one",
    PhichResource.TWO: "two",
}

NO_CELLS_MESSAGE = "No LTE cells were found..."


def freq_formatter(freq: float) -> str:
    """Format a frequency offset with three significant digits and an SI suffix."""
    for limit, scale, suffix in (
        (998.0, 1.0, "h"),
        (998e3, 1e3, "k"),
        (998e6, 1e6, "m"),
        (998e9, 1e9, "g"),
        (998e12, 1e12, "t"),
    ):
        if freq < limit:
            return f"{freq / scale:4.3g}{suffix}"
    return f"{freq:g}"


def format_cell_row(detected: DetectedCell) -> str:
    cell = detected.cell
    fields = [
        f"{cell.n_id_cell:3d}",
        f"{cell.fc / 1e6:6.4g}M",
        freq_formatter(float(cell.freq_superfine or 0.0)),
        f"{float(db10(cell.pss_pow)):5.3g}",
        _CP_CODES[cell.cp_type],
        f"{cell.n_rb_dl:3d}",
        _PHICH_DURATION_CODES[cell.phich_duration],
        f"{_PHICH_RESOURCE_CODES[cell.phich_resource]:>3}",
        f"{detected.correction:.20g}",
    ]
    return " ".join(fields)


def format_table(result: SearchResult) -> str:
    if not result.cells:
        return NO_CELLS_MESSAGE
    lines = [
        "Detected the following cells:",
        "C: CP type ; P: PHICH duration ; PR: PHICH resource type",
        "CID      fc  foff RXPWR C nRB P  PR CrystalCorrectionFactor",
    ]
    lines.extend(format_cell_row(detected) for detected in result.cells)
    return "\n".join(lines)


def _opt_int(value: Optional[Any]) -> Optional[int]:
    return None if value is None else int(value)


def _opt_float(value: Optional[Any]) -> Optional[float]:
    return None if value is None else float(value)


def serialize_result(result: SearchResult) -> Dict[str, Any]:
    """Return a JSON-serializable description of a search result."""

    cells: List[Dict[str, Any]] = []
    for detected in result.cells:
        cell = detected.cell
        cells.append(
            {
                "cell_id": _opt_int(cell.n_id_cell),
                "n_id_1": _opt_int(cell.n_id_1),
                "n_id_2": _opt_int(cell.n_id_2),
                "fc_hz": float(cell.fc),
                "freq_offset_hz": _opt_float(cell.freq_superfine),
                "rx_power_db": float(db10(cell.pss_pow)),
                "cp_type": cell.cp_type.value,
                "n_rb_dl": _opt_int(cell.n_rb_dl),
                "phich_duration": cell.phich_duration.value,
                "phich_resource": cell.phich_resource.value,
                "n_ports": _opt_int(cell.n_ports),
                "sfn": _opt_int(cell.sfn),
                "correction": float(detected.correction),
            }
        )
    return {
        "input_correction": result.input_correction,
        "cells": cells,
        "frequencies": [
            {
                "fc_hz": float(res.fc),
                "peaks": int(res.n_peaks),
                "confirmed": len(res.cells),
                "rejected_sss": res.n_rejected_sss,
                "rejected_mib": res.n_rejected_mib,
                "skipped": res.skipped,
                "skip_reason": res.skip_reason,
            }
            for res in result.frequencies
        ],
        "skipped_frequencies": [float(fc) for fc in result.skipped_frequencies],
    }


def format_json(result: SearchResult) -> str:
    return json.dumps(serialize_result(result), indent=2, sort_keys=True)
