"""Tests for the collection catalog and its startup validation."""

import pytest

from ucsreport.catalog import (
    CATALOG,
    FAULT_SEVERITY_RANK,
    retained_names,
    validate_catalog,
)
from ucsreport.errors import ConfigurationError
from ucsreport.recommendations import RULES, RuleDefinition
from ucsreport.schema import SectionDefinition, Verdict


def _def(title: str, **kw) -> SectionDefinition:
    base = {"tab_group": "G", "subtab": "S", "entity_kind": "topSystem", "fields": ("name",)}
    base.update(kw)
    return SectionDefinition(title=title, **base)


def test_shipped_catalog_is_valid():
    validate_catalog(CATALOG, RULES)


def test_every_rule_input_is_retained():
    retained = retained_names(CATALOG)
    for rule in RULES:
        assert set(rule.inputs) <= retained, rule.description


def test_titles_are_unique_and_fields_present():
    titles = [s.title for s in CATALOG]
    assert len(titles) == len(set(titles))
    assert all(s.fields for s in CATALOG)
    assert len(CATALOG) >= 80


def test_duplicate_title_is_rejected():
    with pytest.raises(ConfigurationError, match="duplicate section title"):
        validate_catalog([_def("A"), _def("A")])


def test_duplicate_retained_name_is_rejected():
    with pytest.raises(ConfigurationError, match="more than one section"):
        validate_catalog([_def("A", retain_as="x"), _def("B", retain_as="x")])


def test_empty_fields_are_rejected():
    with pytest.raises(ConfigurationError, match="no fields"):
        validate_catalog([_def("A", fields=())])


def test_rule_reading_unknown_dataset_is_rejected():
    rule = RuleDefinition(description="needs ghost", inputs=("ghost",), evaluate=lambda d: Verdict.ok())
    with pytest.raises(ConfigurationError, match="ghost"):
        validate_catalog([_def("A", retain_as="real")], [rule])


def test_section_definitions_are_immutable():
    with pytest.raises(Exception):
        CATALOG[0].title = "changed"


def test_severity_rank_orders_critical_first():
    ordered = sorted(FAULT_SEVERITY_RANK, key=FAULT_SEVERITY_RANK.get)
    assert ordered[:4] == ["critical", "major", "minor", "warning"]


def test_chained_sections_name_their_child_kind():
    chained = [s for s in CATALOG if s.child_kind]
    assert chained
    for s in chained:
        assert s.query_kind == s.child_kind
        assert "parentDn" in s.fields
