"""
Persistence strategy interface.

A strategy is the only part of a repository that talks to storage. The
pipeline in ``repokit.repositories.base`` drives it and never inspects
entities itself.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional


class PersistenceStrategy(ABC):

    @abstractmethod
    def get_table(self) -> str:
        """Name of the table being written, used as validator context."""

    @abstractmethod
    def get_key_name(self) -> str:
        """Table-qualified primary key name (``users.id``)."""

    @abstractmethod
    def new_query(self):
        """Return a fresh query scoped to this strategy's table."""

    @abstractmethod
    def get_new(self, attributes: Optional[Mapping[str, Any]] = None) -> Any:
        """Entity factory."""

    def make_entity(self, raw: Any) -> Any:
        """Turn one raw query row into an entity."""
        return raw

    @abstractmethod
    def get_entity_key(self, entity: Any) -> Any: ...

    @abstractmethod
    def get_entity_attributes(self, entity: Any) -> Dict[str, Any]: ...

    @abstractmethod
    def ensure_updatable(self, entity: Any) -> None:
        """Raise ``PreconditionError`` when ``entity`` cannot be updated."""

    @abstractmethod
    def perform_create(self, entity: Any, attributes: Mapping[str, Any]) -> bool: ...

    @abstractmethod
    def perform_update(self, entity: Any, attributes: Mapping[str, Any]) -> bool: ...

    @abstractmethod
    def perform_delete(self, entity: Any) -> bool: ...
