"""
CLI argument parsing. One endpoint, a batch CSV, or a saved snapshot.
"""

import argparse
from pathlib import Path
from typing import Optional


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ucsreport",
        description="Collect UCS Manager inventory and produce an offline HTML report "
                    "with best-practice recommendations.",
    )

    # Targets
    parser.add_argument(
        "-e",
        "--endpoint",
        metavar="HOST",
        help="UCS Manager address (hostname or virtual IP)",
    )
    parser.add_argument(
        "-u",
        "--username",
        metavar="USER",
        help="UCS Manager user (required with --endpoint)",
    )
    parser.add_argument(
        "--password-env",
        metavar="VAR",
        help="Read the password from environment variable VAR instead of prompting",
    )
    parser.add_argument(
        "--targets",
        type=Path,
        metavar="CSV",
        help="Batch file with columns endpoint,username,password_env[,output_dir]; "
             "each target is reported on in turn",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        dest="output_dir",
        type=Path,
        default=Path("./output"),
        help="Output directory (default: ./output). In batch mode each target "
             "gets a subdirectory named after its endpoint.",
    )

    # Snapshot load/save
    parser.add_argument(
        "--from-snapshot",
        type=Path,
        metavar="PATH",
        help="Skip collection; load a collection snapshot from PATH and render it",
    )
    parser.add_argument(
        "--collect-only",
        action="store_true",
        help="Collect and save the snapshot; do not evaluate or render",
    )

    # Connection
    parser.add_argument(
        "--verify-tls",
        action="store_true",
        help="Verify the controller's TLS certificate (default: off, UCSM ships self-signed)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="Per-request timeout (default: 30)",
    )

    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the report in a browser when done (single target only)",
    )

    args = parser.parse_args(argv)

    sources = [s for s in (args.endpoint, args.targets, args.from_snapshot) if s]
    if len(sources) != 1:
        parser.error("give exactly one of --endpoint, --targets or --from-snapshot")
    if args.endpoint and not args.username:
        parser.error("--endpoint requires --username")
    return args
