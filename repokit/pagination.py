"""Paginated result container."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, List


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total: int = 0
    per_page: int = 15
    current_page: int = 1

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    def map(self, fn: Callable[[Any], Any]) -> "Page":
        """Return a copy of the page with ``fn`` applied to every item."""
        return replace(self, items=[fn(item) for item in self.items])

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
