"""
Item CQRS APIs

Queries (Read Operations):
- Primary key lookups
- DIRECT and PATTERN searches, one page at a time
- Full-drain counts and exports (JSON lines or CSV)

Commands (Write Operations):
- Create without overwrite, attribute updates, transactional key replacement
- Single and batch deletes
- Line-delimited bulk import

Usage:
    from .queries import ItemReadApi
    from .commands import ItemWriteApi

    read_api = ItemReadApi(config, pool)
    write_api = ItemWriteApi(config, pool)
"""

from .queries import ItemReadApi
from .commands import ItemWriteApi

__all__ = [
    "ItemReadApi",
    "ItemWriteApi",
]
