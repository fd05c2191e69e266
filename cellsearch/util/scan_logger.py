"""Structured JSON-lines event log for cell search runs."""

from __future__ import annotations

import json
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Set


def utc_now_str() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ScanLogger:
    """Append one JSON object per event to the log file and any mirrors.

    Writes are serialised with a lock because per-frequency searches may run in
    worker threads.
    """

    def __init__(self, log_path: Path, mirror_paths: Optional[List[Path]] = None):
        self.log_path = log_path
        self.mirror_paths: List[Path] = []
        self._ensure_parent(self.log_path)
        seen: Set[str] = {str(self.log_path)}
        for mirror in mirror_paths or []:
            resolved = mirror if mirror.is_absolute() else (Path.cwd() / mirror).absolute()
            if str(resolved) in seen:
                continue
            self._ensure_parent(resolved)
            self.mirror_paths.append(resolved)
            seen.add(str(resolved))
        self.run_id = f"run-{int(time.time() * 1000)}-pid{os.getpid()}"
        self._lock = threading.Lock()

    @staticmethod
    def _ensure_parent(path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_path(cls, path: Optional[str]) -> Optional["ScanLogger"]:
        if not path:
            return None
        return cls(Path(path).expanduser())

    def log(self, event: str, **fields: Any) -> None:
        record = {
            "ts": utc_now_str(),
            "run_id": self.run_id,
            "event": event,
            **fields,
        }
        line = json.dumps(record, default=str) + "\n"
        with self._lock:
            for target in [self.log_path] + self.mirror_paths:
                with target.open("a", encoding="utf-8") as fh:
                    fh.write(line)
