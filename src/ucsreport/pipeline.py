"""
Pipeline for one target: collect (or load a snapshot), evaluate
recommendations, run renderers, then save the snapshot.
Nothing is written to output_dir until the report has been fully built.
"""

import json
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ._util import utc_timestamp
from .builder import build_report
from .catalog import CATALOG
from .client import ManagementClient, RecordingCache, SnapshotClient
from .recommendations import RULES, RuleDefinition, evaluate_rules
from .schema import (
    SCHEMA_VERSION,
    CollectionSnapshot,
    ReportDocument,
    RuleResult,
    SectionDefinition,
)

SNAPSHOT_FILENAME = "collection-snapshot.json"

Renderers = Callable[[ReportDocument, List[RuleResult], Path], None]


def load_snapshot(path: Path) -> CollectionSnapshot:
    """Load and deserialize a collection snapshot from JSON."""
    data = json.loads(Path(path).read_text())
    file_version = data.get("schema_version", 1)
    if file_version > SCHEMA_VERSION:
        print(
            f"WARNING: snapshot was created by a newer ucsreport (schema v{file_version}, "
            f"this tool supports v{SCHEMA_VERSION}). Some fields may be dropped.",
            file=sys.stderr,
        )
    return CollectionSnapshot.model_validate(data)


def save_snapshot(snapshot: CollectionSnapshot, path: Path) -> None:
    """Serialize snapshot to JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(indent=2))


def _default_renderers(document: ReportDocument, results: List[RuleResult], output_dir: Path) -> None:
    from .renderers import run_all

    run_all(document, results, output_dir)


def run_pipeline(
    *,
    output_dir: Path,
    client: Optional[ManagementClient] = None,
    catalog: Sequence[SectionDefinition] = CATALOG,
    rules: Sequence[RuleDefinition] = RULES,
    run_renderers: Renderers = _default_renderers,
    from_snapshot_path: Optional[Path] = None,
    collect_only: bool = False,
) -> Tuple[ReportDocument, List[RuleResult]]:
    """
    Build the report from a live client or from a saved snapshot; then
    optionally evaluate rules and render.

    Returns the document and rule results (empty when collect_only).
    Client errors propagate; in that case output_dir is left untouched.
    """
    if from_snapshot_path is not None:
        client = SnapshotClient(load_snapshot(from_snapshot_path))
    if client is None:
        raise ValueError("run_pipeline needs a client or a snapshot path")

    live = from_snapshot_path is None
    cache = RecordingCache()
    with client:
        document = build_report(client, catalog, cache=cache)
    if live:
        # replayed snapshots keep the time they were collected
        document.meta.setdefault("timestamp", utc_timestamp())

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    results: List[RuleResult] = []
    if not collect_only:
        results = evaluate_rules(document.retained, rules)
        run_renderers(document, results, output_dir)

    # Written last: a snapshot on disk means the whole run succeeded.
    if live:
        save_snapshot(cache.to_snapshot(document.meta), output_dir / SNAPSHOT_FILENAME)
    return document, results
