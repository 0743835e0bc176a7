# storefront/services/__init__.py
"""
Business logic services for the Storefront API.

Only the storage-free helpers are re-exported here; services that touch the
ORM are imported from their own modules (storefront.services.products, ...).
"""
from storefront.services.conversions import parse_bool, split_tags, to_decimal, to_int
from storefront.services.grouping import GroupedRows, group_rows

__all__ = [
    "GroupedRows",
    "group_rows",
    "parse_bool",
    "split_tags",
    "to_decimal",
    "to_int",
]
