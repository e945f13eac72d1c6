"""Markdown recommendations summary renderer (recommendations.md)."""

from pathlib import Path
from typing import List

from jinja2 import Environment

from ..schema import ReportDocument, RuleResult


def _md_cell(text: str) -> str:
    return text.replace("|", "\\|")


def _verdict_note(result: RuleResult) -> str:
    v = result.verdict
    parts = []
    if v.detail:
        parts.append(v.detail)
    if v.items:
        parts.append(", ".join(f"`{i}`" for i in v.items))
    return "; ".join(parts)


def render(
    document: ReportDocument,
    results: List[RuleResult],
    env: Environment,
    output_dir: Path,
) -> None:
    output_dir = Path(output_dir)
    meta = document.meta
    lines = ["# UCS Recommendations", ""]
    name = meta.get("controller_name") or meta.get("endpoint", "")
    if name:
        lines.append(f"**Domain:** {name} (`{meta.get('endpoint', '')}`)")
    if meta.get("controller_version"):
        lines.append(f"**UCS Manager:** {meta['controller_version']}")
    if meta.get("timestamp"):
        lines.append(f"**Collected:** {meta['timestamp']}")
    lines.append("")

    n_pass = sum(1 for r in results if r.verdict.passed)
    n_fail = len(results) - n_pass
    lines.append("## Summary")
    lines.append("")
    lines.append(f"**{n_pass}** checks passed &nbsp;|&nbsp; **{n_fail}** checks failed")
    lines.append("")

    lines.append("## Checks")
    lines.append("")
    lines.append("| Check | Result | Detail |")
    lines.append("|-------|--------|--------|")
    for r in results:
        status = "PASS" if r.verdict.passed else "**FAIL**"
        lines.append(f"| {_md_cell(r.description)} | {status} | {_md_cell(_verdict_note(r))} |")
    lines.append("")

    lines.append("## Sections collected")
    lines.append("")
    for group, subtabs in document.groups():
        lines.append(f"### {group}")
        for subtab, tables in subtabs:
            for t in tables:
                lines.append(f"- {subtab} / {t.title}: {len(t.rows)}")
        lines.append("")

    (output_dir / "recommendations.md").write_text("\n".join(lines))
