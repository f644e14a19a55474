"""
Table CQRS APIs

Queries: table listing and descriptions, whole-table export, access patterns.
Commands: table, GSI and TTL administration, access pattern maintenance.
"""

from .queries import TableReadApi
from .commands import TableWriteApi

__all__ = [
    "TableReadApi",
    "TableWriteApi",
]
