"""
Reusable query narrowing applied by repositories before every fetch.

A criteria is any callable that receives a query and returns the query to
keep using, so plain functions work as well as the classes below.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

Criteria = Callable[[Any], Any]


@dataclass(frozen=True)
class Where:
    column: str
    operator: str
    value: Any

    def __call__(self, query):
        return query.where(self.column, self.operator, self.value)


@dataclass(frozen=True)
class OrderBy:
    column: str
    direction: str = "asc"

    def __call__(self, query):
        return query.order_by(self.column, self.direction)


def apply_criteria(query, criteria):
    """Apply each criteria in order; a criteria returning ``None`` keeps the current query."""
    for criterion in criteria:
        narrowed = criterion(query)
        if narrowed is not None:
            query = narrowed
    return query
