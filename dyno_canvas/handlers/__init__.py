"""
Handler Layer for dyno-canvas

Application-facing APIs following Command Query Responsibility Segregation:
each concern has a queries.py (read) and a commands.py (write).

The handler layer:
- Validates input before any DynamoDB call
- Composes core components (query plans, executor, pipeline, pattern store)
- Returns uniform result objects instead of raising

Architecture:
handlers/ (this layer) -> core/ (infrastructure) -> DynamoDB
handlers/ (this layer) <- models/ (value objects and results)
"""

from .items.queries import ItemReadApi
from .items.commands import ItemWriteApi
from .tables.queries import TableReadApi
from .tables.commands import TableWriteApi

__all__ = [
    'ItemReadApi',
    'ItemWriteApi',
    'TableReadApi',
    'TableWriteApi',
]
