"""
Target resolution: a single endpoint from the command line, or a batch CSV.

Batch CSV columns: endpoint, username, password_env and optionally
output_dir. The password is read from the environment variable named in
password_env; an empty password_env prompts interactively.
"""

import csv
import getpass
import os
import re
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .errors import ConfigurationError

REQUIRED_COLUMNS = ("endpoint", "username", "password_env")


class Target(BaseModel):
    """One controller to report on."""

    endpoint: str
    username: str
    password: str = Field(default="", repr=False)
    output_dir: Path


def target_dirname(endpoint: str) -> str:
    """Filesystem-safe directory name for an endpoint."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", endpoint) or "target"


def resolve_password(username: str, endpoint: str, env_name: Optional[str] = None) -> str:
    """Read the password from *env_name*, or prompt when no variable is named."""
    if env_name:
        value = os.environ.get(env_name)
        if value is None:
            raise ConfigurationError(
                f"{endpoint}: environment variable {env_name} is not set"
            )
        return value
    return getpass.getpass(f"Password for {username}@{endpoint}: ")


def load_targets(csv_path: Path, default_output_dir: Path) -> List[Target]:
    """Parse a batch CSV. Blank lines and lines starting with # are ignored."""
    csv_path = Path(csv_path)
    try:
        text = csv_path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"cannot read targets file {csv_path}: {exc}") from exc

    lines = [ln for ln in text.splitlines() if ln.strip() and not ln.lstrip().startswith("#")]
    reader = csv.DictReader(lines)
    header = [h.strip() for h in (reader.fieldnames or [])]
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise ConfigurationError(f"{csv_path}: missing column(s): {', '.join(missing)}")

    targets: List[Target] = []
    for row_no, row in enumerate(reader, start=2):
        row = {(k or "").strip(): (v or "").strip() for k, v in row.items()}
        endpoint = row.get("endpoint", "")
        username = row.get("username", "")
        if not endpoint or not username:
            raise ConfigurationError(f"{csv_path}: row {row_no}: endpoint and username are required")
        out = row.get("output_dir") or ""
        targets.append(Target(
            endpoint=endpoint,
            username=username,
            password=resolve_password(username, endpoint, row.get("password_env") or None),
            output_dir=Path(out) if out else Path(default_output_dir) / target_dirname(endpoint),
        ))
    if not targets:
        raise ConfigurationError(f"{csv_path}: no targets listed")
    return targets
