"""
Report schema.

Typed contract between the collection catalog, the report builder, the
recommendation engine and the renderers. Controller records themselves stay
untyped (``EntityRecord``); section definitions declare which fields they read.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

SCHEMA_VERSION = 1

# One controller object: XML attribute name -> value.
EntityRecord = Dict[str, Any]


# --- Section definitions (static catalog) ---


class SortOrder(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class FilterOp(str, Enum):
    EQ = "eq"
    NE = "ne"
    IN = "in"
    NOT_IN = "not_in"


class FieldFilter(BaseModel):
    """Predicate on a single record field. A missing field never matches."""

    field: str
    op: FilterOp = FilterOp.EQ
    value: Any = None

    model_config = {"frozen": True, "extra": "forbid"}

    def matches(self, record: EntityRecord) -> bool:
        if self.field not in record:
            return False
        actual = record[self.field]
        if self.op == FilterOp.EQ:
            return actual == self.value
        if self.op == FilterOp.NE:
            return actual != self.value
        if self.op == FilterOp.IN:
            return actual in self.value
        return actual not in self.value


class SortKey(BaseModel):
    """One component of a section's (possibly composite) sort.

    ``rank`` maps known values to an ordinal (lower sorts first); values not
    in the map sort after every ranked value. ``order`` overrides the
    section-wide sort order for this key only.
    """

    field: str
    rank: Optional[Dict[str, int]] = None
    numeric: bool = False
    order: Optional[SortOrder] = None

    model_config = {"frozen": True, "extra": "forbid"}


class SectionDefinition(BaseModel):
    """One report section: what to fetch, how to shape it, where it goes."""

    title: str
    tab_group: str
    subtab: str
    entity_kind: str
    child_kind: Optional[str] = None  # queried once per primary record
    fields: Tuple[str, ...]
    filters: Tuple[FieldFilter, ...] = ()
    sort: Tuple[SortKey, ...] = ()
    sort_order: SortOrder = SortOrder.ASCENDING
    retain_as: Optional[str] = None
    render: bool = True

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def query_kind(self) -> str:
        """Kind whose records make up the section (the child kind when chained)."""
        return self.child_kind or self.entity_kind


# --- Report document (per target) ---


class SectionTable(BaseModel):
    """A rendered section: fixed column header plus projected rows."""

    tab_group: str
    subtab: str
    title: str
    columns: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)


class ReportDocument(BaseModel):
    """Everything collected for one target, in catalog order."""

    meta: dict = Field(default_factory=dict)  # endpoint, timestamp, controller name/version
    sections: List[SectionTable] = Field(default_factory=list)
    retained: Dict[str, List[EntityRecord]] = Field(default_factory=dict)

    def section(self, title: str) -> Optional[SectionTable]:
        for s in self.sections:
            if s.title == title:
                return s
        return None

    def groups(self) -> List[Tuple[str, List[Tuple[str, List[SectionTable]]]]]:
        """Nest sections as group -> subtab -> tables, keeping first-seen order."""
        nested: Dict[str, Dict[str, List[SectionTable]]] = {}
        for s in self.sections:
            nested.setdefault(s.tab_group, {}).setdefault(s.subtab, []).append(s)
        return [(g, list(subtabs.items())) for g, subtabs in nested.items()]


# --- Recommendations ---


class VerdictStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class Verdict(BaseModel):
    """Result of one rule. ``detail`` is free text, ``items`` names offenders."""

    status: VerdictStatus
    detail: Optional[str] = None
    items: Tuple[str, ...] = ()

    model_config = {"frozen": True, "extra": "forbid"}

    @classmethod
    def ok(cls, detail: Optional[str] = None) -> "Verdict":
        return cls(status=VerdictStatus.PASS, detail=detail)

    @classmethod
    def failed(cls, items: Optional[List[str]] = None, detail: Optional[str] = None) -> "Verdict":
        return cls(status=VerdictStatus.FAIL, detail=detail, items=tuple(items or ()))

    @property
    def passed(self) -> bool:
        return self.status == VerdictStatus.PASS


class RuleResult(BaseModel):
    description: str
    inputs: List[str] = Field(default_factory=list)
    verdict: Verdict


# --- Raw collection snapshot (serialized as collection-snapshot.json) ---


class CollectionSnapshot(BaseModel):
    """
    Every record fetched for one target, keyed by query.
    Replaying it through SnapshotClient reproduces the report offline.
    """

    schema_version: int = SCHEMA_VERSION
    meta: dict = Field(default_factory=dict)
    classes: Dict[str, List[EntityRecord]] = Field(default_factory=dict)
    children: Dict[str, Dict[str, List[EntityRecord]]] = Field(default_factory=dict)  # parent dn -> kind -> records

    model_config = {"extra": "forbid"}
