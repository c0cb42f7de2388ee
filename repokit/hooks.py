"""
Pipeline hook registration.

Every slot is an optional callable. Return values are ignored; a hook that
wants to change the outcome mutates the query, entity or results it receives,
or raises.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional

from .exceptions import ConfigurationError

QueryHook = Callable[[Any, bool], Any]
ResultsHook = Callable[[Any], Any]
BeforeWriteHook = Callable[[Any, Mapping[str, Any]], Any]
AfterWriteHook = Callable[[Any], Any]


@dataclass
class RepositoryHooks:
    before_query: Optional[QueryHook] = None
    after_query: Optional[ResultsHook] = None
    before_create: Optional[BeforeWriteHook] = None
    after_create: Optional[AfterWriteHook] = None
    before_update: Optional[BeforeWriteHook] = None
    after_update: Optional[AfterWriteHook] = None

    @classmethod
    def names(cls):
        return [f.name for f in fields(cls)]

    def register(self, name: str, handler: Optional[Callable]) -> None:
        if name not in self.names():
            raise ConfigurationError(f"Unknown repository hook '{name}'. Expected one of {self.names()}")
        setattr(self, name, handler)

    def run(self, name: str, *args: Any) -> None:
        handler = getattr(self, name)
        if handler is not None:
            handler(*args)
