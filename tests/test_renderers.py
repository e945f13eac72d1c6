"""
Tests for renderers: HTML report structure and escaping, markdown summary.
"""

from pathlib import Path

import pytest
from jinja2 import Environment

from ucsreport.builder import build_report
from ucsreport.catalog import CATALOG
from ucsreport.client import SnapshotClient
from ucsreport.pipeline import load_snapshot
from ucsreport.recommendations import evaluate_rules
from ucsreport.renderers import run_all
from ucsreport.renderers.audit_report import render as render_audit_report
from ucsreport.renderers.html_report import render as render_html_report
from ucsreport.schema import ReportDocument, RuleResult, SectionTable, Verdict

FIXTURES = Path(__file__).parent / "fixtures"


def _make_render_env():
    """Jinja2 env without a loader; the HTML renderer falls back to the package templates."""
    return Environment(autoescape=True)


@pytest.fixture
def report():
    snapshot = load_snapshot(FIXTURES / "ucsm_snapshot.json")
    document = build_report(SnapshotClient(snapshot), CATALOG)
    return document, evaluate_rules(document.retained)


def test_run_all_writes_html_and_markdown(report, tmp_path):
    document, results = report
    run_all(document, results, tmp_path)
    assert (tmp_path / "report.html").exists()
    assert (tmp_path / "recommendations.md").exists()


def test_html_has_tabs_sections_and_columns_in_order(report, tmp_path):
    document, results = report
    render_html_report(document, results, _make_render_env(), tmp_path)
    html = (tmp_path / "report.html").read_text()

    for group in ("System", "Equipment", "Firmware", "Servers", "LAN", "SAN", "Faults", "Statistics"):
        assert f">{group}</button>" in html
    assert "Recommendations</button>" in html
    assert html.index(">System</button>") < html.index(">Equipment</button>") < html.index(">Statistics</button>")

    # VLAN table header follows the section's field order
    vlans = html[html.index("<h3>VLANs"):]
    assert vlans.index("<th>id</th>") < vlans.index("<th>name</th>") < vlans.index("<th>switchId</th>")
    assert "UCS-LAB" in html
    assert "4.2(3d)" in html


def test_html_marks_pass_and_fail(tmp_path):
    document = ReportDocument(meta={"endpoint": "ucsm"})
    results = [
        RuleResult(description="Telnet is disabled", verdict=Verdict.ok()),
        RuleResult(description="vNIC templates are updating templates",
                   verdict=Verdict.failed(items=["tmpl-a", "<script>x</script>"])),
    ]
    render_html_report(document, results, _make_render_env(), tmp_path)
    html = (tmp_path / "report.html").read_text()
    assert 'class="pass"' in html
    assert 'class="fail"' in html
    assert "tmpl-a<br>" in html
    assert "<script>x</script>" not in html
    assert "&lt;script&gt;x&lt;/script&gt;" in html


def test_html_escapes_cell_values(tmp_path):
    document = ReportDocument(
        meta={"endpoint": "ucsm"},
        sections=[SectionTable(tab_group="System", subtab="Overview", title="UCS System",
                               columns=["name"], rows=[["<b>bold</b>"]])],
    )
    render_html_report(document, [], _make_render_env(), tmp_path)
    html = (tmp_path / "report.html").read_text()
    assert "&lt;b&gt;bold&lt;/b&gt;" in html


def test_empty_table_shows_placeholder(tmp_path):
    document = ReportDocument(
        sections=[SectionTable(tab_group="SAN", subtab="VSANs", title="VSANs", columns=["id", "name"])],
    )
    render_html_report(document, [], _make_render_env(), tmp_path)
    html = (tmp_path / "report.html").read_text()
    assert "No records" in html
    assert 'colspan="2"' in html


def test_markdown_summary(report, tmp_path):
    document, results = report
    render_audit_report(document, results, _make_render_env(), tmp_path)
    md = (tmp_path / "recommendations.md").read_text()
    assert md.startswith("# UCS Recommendations")
    assert "**Domain:** UCS-LAB (`ucsm-lab.example.com`)" in md
    n_fail = sum(1 for r in results if not r.verdict.passed)
    assert f"**{n_fail}** checks failed" in md
    assert "| vNIC templates are updating templates | **FAIL** | `vnic-b` |" in md
    assert "| Fabric A has sufficient port licenses (remaining shown) | PASS | 10 |" in md
    assert "- VSANs / VSANs: 0" in md
