"""
CLI entry point. Validates the catalog, resolves targets and runs the
pipeline once per target, sequentially.
"""

import sys
import webbrowser
from pathlib import Path
from typing import List, Optional

from ._util import append_run_log
from .catalog import CATALOG, validate_catalog
from .cli import parse_args
from .client import UcsmClient
from .errors import ConfigurationError, ReportError
from .pipeline import run_pipeline
from .recommendations import RULES
from .targets import Target, load_targets, resolve_password


def _resolve_targets(args) -> List[Target]:
    if args.targets:
        return load_targets(args.targets, args.output_dir)
    return [Target(
        endpoint=args.endpoint,
        username=args.username,
        password=resolve_password(args.username, args.endpoint, args.password_env),
        output_dir=args.output_dir,
    )]


def _summarize(label: str, output_dir: Path, results) -> None:
    n_fail = sum(1 for r in results if not r.verdict.passed)
    print(
        f"{label}: report written to {output_dir} "
        f"({len(results) - n_fail} checks passed, {n_fail} failed)"
    )


def _run_snapshot(args) -> int:
    label = str(args.from_snapshot)
    try:
        _, results = run_pipeline(output_dir=args.output_dir, from_snapshot_path=args.from_snapshot)
    except (ReportError, OSError, ValueError) as e:
        print(f"ERROR: {label}: {e}", file=sys.stderr)
        return 1
    _summarize(label, args.output_dir, results)
    if args.open:
        webbrowser.open((args.output_dir / "report.html").resolve().as_uri())
    return 0


def _run_target(target: Target, args, log_dir: Path) -> bool:
    """Report on one target. Failures are logged; nothing is raised."""
    client = UcsmClient(
        target.endpoint,
        target.username,
        target.password,
        verify_tls=args.verify_tls,
        timeout=args.timeout,
    )
    print(f"{target.endpoint}: collecting...", file=sys.stderr)
    try:
        _, results = run_pipeline(
            client=client,
            output_dir=target.output_dir,
            collect_only=args.collect_only,
        )
    except (ReportError, OSError) as e:
        print(f"ERROR: {target.endpoint}: {e}", file=sys.stderr)
        append_run_log(log_dir, target.endpoint, "failed", str(e))
        return False
    if args.collect_only:
        print(f"{target.endpoint}: snapshot written to {target.output_dir}")
    else:
        _summarize(target.endpoint, target.output_dir, results)
    append_run_log(log_dir, target.endpoint, "ok", str(target.output_dir))
    return True


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)

    # Catalog/rule mismatches are programming errors: stop before any target.
    try:
        validate_catalog(CATALOG, RULES)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.from_snapshot:
        return _run_snapshot(args)

    try:
        targets = _resolve_targets(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    failed = 0
    for target in targets:
        if not _run_target(target, args, args.output_dir):
            failed += 1

    if len(targets) > 1:
        print(f"{len(targets) - failed} of {len(targets)} targets succeeded", file=sys.stderr)
    elif failed == 0 and args.open and not args.collect_only:
        webbrowser.open((targets[0].output_dir / "report.html").resolve().as_uri())
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
