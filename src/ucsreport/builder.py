"""
Report builder: walks the catalog against one live client and produces a
ReportDocument.

Any client failure propagates unchanged; the document is only returned once
every section has been built, so a failed target never yields a partial report.
"""

from typing import Callable, List, Optional, Sequence

from ._util import cell_text, debug as _debug_fn
from .catalog import CATALOG
from .client import ManagementClient, RecordingCache
from .schema import (
    EntityRecord,
    FieldFilter,
    ReportDocument,
    SectionDefinition,
    SectionTable,
    SortKey,
    SortOrder,
)


def _debug(msg: str) -> None:
    _debug_fn("builder", msg)


def apply_filters(records: List[EntityRecord], filters: Sequence[FieldFilter]) -> List[EntityRecord]:
    """Keep records matching every filter (AND)."""
    if not filters:
        return list(records)
    return [r for r in records if all(f.matches(r) for f in filters)]


def _sort_key_fn(key: SortKey) -> Callable[[EntityRecord], tuple]:
    if key.rank is not None:
        unranked = len(key.rank)

        def by_rank(r: EntityRecord) -> tuple:
            text = cell_text(r.get(key.field))
            return (key.rank.get(text, unranked), text)
        return by_rank

    if key.numeric:
        def by_number(r: EntityRecord) -> tuple:
            try:
                return (0, float(r.get(key.field)))
            except (TypeError, ValueError):
                return (1, 0.0)
        return by_number

    def by_text(r: EntityRecord) -> tuple:
        return (cell_text(r.get(key.field)),)
    return by_text


def sort_records(
    records: List[EntityRecord],
    keys: Sequence[SortKey],
    order: SortOrder = SortOrder.ASCENDING,
) -> List[EntityRecord]:
    """Stable composite sort: one pass per key, least significant first.

    Ties keep their fetch order in both directions.
    """
    out = list(records)
    for key in reversed(keys):
        key_order = key.order or order
        out.sort(key=_sort_key_fn(key), reverse=key_order == SortOrder.DESCENDING)
    return out


def project(records: List[EntityRecord], fields: Sequence[str]) -> List[List[str]]:
    """One row per record, one cell per field; missing fields are empty cells."""
    return [[cell_text(r.get(f)) for f in fields] for r in records]


def _resolve(
    client: ManagementClient,
    cache: RecordingCache,
    definition: SectionDefinition,
) -> List[EntityRecord]:
    primaries = cache.fetch(client, definition.entity_kind)
    if not definition.child_kind:
        return primaries
    flattened: List[EntityRecord] = []
    for parent in primaries:
        for child in cache.fetch(client, definition.child_kind, parent):
            child.setdefault("parentDn", parent.get("dn", ""))
            flattened.append(child)
    return flattened


def build_report(
    client: ManagementClient,
    catalog: Sequence[SectionDefinition] = CATALOG,
    meta: Optional[dict] = None,
    cache: Optional[RecordingCache] = None,
) -> ReportDocument:
    """Fetch, filter, sort, retain and project every section in catalog order.

    *cache* may be supplied by the caller to keep the fetched records (it is
    what the pipeline saves as the collection snapshot).
    No wall-clock time is added here; the pipeline stamps the collection time.
    """
    if cache is None:
        cache = RecordingCache()

    doc_meta = {"endpoint": client.endpoint}
    doc_meta.update(client.meta)
    doc_meta.update(meta or {})
    doc = ReportDocument(meta=doc_meta)

    for definition in catalog:
        records = _resolve(client, cache, definition)
        records = apply_filters(records, definition.filters)
        if definition.sort:
            records = sort_records(records, definition.sort, definition.sort_order)
        if definition.retain_as:
            doc.retained[definition.retain_as] = [dict(r) for r in records]
        if definition.render:
            doc.sections.append(SectionTable(
                tab_group=definition.tab_group,
                subtab=definition.subtab,
                title=definition.title,
                columns=list(definition.fields),
                rows=project(records, definition.fields),
            ))
        _debug(f"{definition.title}: {len(records)} rows")

    _debug(f"{len(doc.sections)} sections, {cache.queries_issued} queries")
    return doc
