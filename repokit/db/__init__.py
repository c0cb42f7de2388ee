"""
Database plumbing: engine/session factories and query objects.
"""

from .query import MappedQuery, TableQuery

__all__ = ["MappedQuery", "TableQuery"]
