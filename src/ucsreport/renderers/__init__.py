"""
Renderers consume a report document, its rule results and a Jinja2
environment, writing to output_dir.
"""

from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from ..schema import ReportDocument, RuleResult

from .audit_report import render as render_audit_report
from .html_report import render as render_html_report

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def make_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
    )


def run_all(document: ReportDocument, results: List[RuleResult], output_dir: Path) -> None:
    """Run all renderers. output_dir is created if it does not exist."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    env = make_environment()
    render_html_report(document, results, env, output_dir)
    render_audit_report(document, results, env, output_dir)
