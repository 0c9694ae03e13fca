"""Snapshot -> ordered, UI-ready list.

A snapshot is the full identifier -> record mapping delivered by a store.
Reconciliation merges each identifier into its record and optionally orders
the list newest first by a date field. It is a pure function: the same
snapshot always yields the same list and the input is never modified.
"""
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

from tienda.utilities.constants import ID_FIELD
from tienda.utilities.dates import parse_date

__all__ = ["merge_id", "reconcile"]


def merge_id(identifier: str, record: Mapping[str, Any], id_field: str = ID_FIELD) -> Dict[str, Any]:
    """Copy ``record`` with the identifier stored under ``id_field`` (the identifier wins)."""
    item = dict(record) if isinstance(record, Mapping) else {}
    item[id_field] = identifier
    return item


def reconcile(snapshot: Optional[Mapping[str, Any]], *, sort_field: Optional[str] = None,
              id_field: str = ID_FIELD) -> List[Dict[str, Any]]:
    """Turn ``snapshot`` into a list of id-annotated records.

    Without ``sort_field`` the snapshot iteration order is kept. With it, records
    are sorted by that field parsed as a date, newest first; records whose field
    is missing or unparseable go last, keeping their snapshot order.
    """
    if not snapshot:
        return []
    items = [merge_id(key, record, id_field) for key, record in snapshot.items()]
    if not sort_field:
        return items

    dated = []
    undated = []
    for item in items:
        when = parse_date(item.get(sort_field))
        if when is None:
            undated.append(item)
        else:
            dated.append((when, item))
    # sorted() is stable with reverse=True, so equal dates keep snapshot order
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _when, item in dated] + undated
