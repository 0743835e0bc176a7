# storefront/services/grouping.py
"""
Group Shopify-style product sheet rows by handle.

A row with a blank handle belongs to the product of the nearest preceding
row that had one. Blank rows before the first handle cannot be grouped and
are dropped (counted in ``skipped_rows``), as are rows whose every cell is
blank; those neither join a group nor end one.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from storefront.services.conversions import clean_text, is_blank

HANDLE_COLUMN = "Handle"

Row = Mapping[str, Any]


@dataclass
class GroupedRows:
    groups: Dict[str, List[Row]] = field(default_factory=dict)
    skipped_rows: int = 0
    total_rows: int = 0

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self) -> Iterator[Tuple[str, List[Row]]]:
        return iter(self.groups.items())

    @property
    def is_empty(self) -> bool:
        return not self.groups


def group_rows(rows: Iterable[Row], key: str = HANDLE_COLUMN) -> GroupedRows:
    out = GroupedRows()
    last_key: Optional[str] = None

    for row in rows:
        out.total_rows += 1
        if all(is_blank(v) for v in row.values()):
            out.skipped_rows += 1
            continue
        handle = clean_text(row.get(key))
        if handle is None:
            handle = last_key
        if handle is None:
            out.skipped_rows += 1
            continue
        last_key = handle
        out.groups.setdefault(handle, []).append(row)

    return out
