"""Shared utilities for ucsreport: debug logging, run log, value helpers."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_DEBUG = bool(os.environ.get("UCSREPORT_DEBUG", ""))

RUN_LOG_NAME = "ucsreport.log"


def debug(label: str, msg: str) -> None:
    """Print a debug message to stderr when UCSREPORT_DEBUG is set."""
    if _DEBUG:
        print(f"[ucsreport] {label}: {msg}", file=sys.stderr)


def is_debug() -> bool:
    return _DEBUG


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def append_run_log(log_dir: Path, target: str, status: str, message: str = "") -> None:
    """Append one outcome line for *target* to the run log in *log_dir*.

    Failures to write the log are reported on stderr but never abort the run.
    """
    line = f"{utc_timestamp()} {status.upper():<7} {target}"
    if message:
        line += f": {message}"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with open(log_dir / RUN_LOG_NAME, "a") as f:
            f.write(line + "\n")
    except OSError as exc:
        print(f"WARNING: cannot write run log in {log_dir}: {exc}", file=sys.stderr)


def cell_text(value: Any) -> str:
    """Render a record value as a table cell; None becomes an empty cell."""
    if value is None:
        return ""
    return str(value)


def to_number(value: Any) -> float:
    """Parse a controller quantity; anything non-numeric counts as 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0
