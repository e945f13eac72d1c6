"""HTML report renderer.

Builds a context dict from the report document and delegates all HTML
generation to templates/report.html.j2 via Jinja2. The result is a single
self-contained file that can be opened offline.
"""

import re
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from ..schema import ReportDocument, RuleResult


def _slug(text: str, used: Dict[str, int]) -> str:
    """HTML id from a title; repeated titles get a numeric suffix."""
    base = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "section"
    n = used.get(base, 0)
    used[base] = n + 1
    return base if n == 0 else f"{base}-{n + 1}"


def _prepare_groups(document: ReportDocument) -> List[dict]:
    used: Dict[str, int] = {}
    groups = []
    for group, subtabs in document.groups():
        group_id = _slug("tab-" + group, used)
        groups.append({
            "id": group_id,
            "name": group,
            "subtabs": [
                {
                    "id": _slug(f"{group_id}-{subtab}", used),
                    "name": subtab,
                    "tables": [
                        {"id": _slug(t.title, used), "title": t.title,
                         "columns": t.columns, "rows": t.rows}
                        for t in tables
                    ],
                }
                for subtab, tables in subtabs
            ],
        })
    return groups


def _prepare_results(results: List[RuleResult]) -> List[dict]:
    out = []
    for r in results:
        v = r.verdict
        out.append({
            "description": r.description,
            "passed": v.passed,
            "detail": v.detail or "",
            # Markup.join escapes each item
            "items_html": Markup("<br>").join(v.items),
        })
    return out


def _build_context(document: ReportDocument, results: List[RuleResult]) -> dict:
    meta = document.meta or {}
    n_pass = sum(1 for r in results if r.verdict.passed)
    return {
        "meta": meta,
        "title": meta.get("controller_name") or meta.get("endpoint") or "UCS domain",
        "groups": _prepare_groups(document),
        "results": _prepare_results(results),
        "n_pass": n_pass,
        "n_fail": len(results) - n_pass,
        "n_sections": len(document.sections),
    }


def render(
    document: ReportDocument,
    results: List[RuleResult],
    env: Environment,
    output_dir: Path,
) -> None:
    """Render report.html by building a context dict and invoking the Jinja2 template."""
    output_dir = Path(output_dir)

    # run_all() supplies a loader; direct callers (tests) may not.
    if env.loader is None:
        templates_dir = Path(__file__).resolve().parent.parent / "templates"
        env = env.overlay(loader=FileSystemLoader(str(templates_dir)))

    template = env.get_template("report.html.j2")
    html = template.render(_build_context(document, results))
    (output_dir / "report.html").write_text(html)
