"""
ORM-backed persistence over a declarative mapped class.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import ObjectDeletedError, StaleDataError

from repokit.config import get_settings
from repokit.db.query import MappedQuery
from repokit.exceptions import ConfigurationError, PreconditionError, StorageError
from .strategy import PersistenceStrategy

logger = logging.getLogger(__name__)


class MappedStrategy(PersistenceStrategy):
    """Persist instances of ``model`` through a session.

    Create and update share one save routine. With ``deep_save`` enabled the
    save also adds every loaded related object reachable through the model's
    relationships, including ones whose relationship cascade would skip them.
    """

    model = None
    deep_save: Optional[bool] = None

    def __init__(self, session: Session, model=None, deep_save: Optional[bool] = None):
        model = model if model is not None else type(self).model
        if model is None:
            raise ConfigurationError(f"{type(self).__name__}.model must be defined.")
        if deep_save is None:
            deep_save = type(self).deep_save
        if deep_save is None:
            deep_save = get_settings().deep_save
        self.deep_save = deep_save
        self.session = session
        self.set_model(model)

    def set_model(self, model) -> "MappedStrategy":
        try:
            mapper = inspect(model)
        except NoInspectionAvailable:
            raise ConfigurationError(f"{model!r} is not a mapped class") from None
        if len(mapper.primary_key) != 1:
            raise ConfigurationError(f"{model.__name__} must have exactly one primary key column")
        self.model = model
        self._mapper = mapper
        self._key_column = mapper.primary_key[0]
        self._key_attr = mapper.get_property_by_column(self._key_column).key
        return self

    def get_model(self):
        return self.model

    def get_table(self) -> str:
        return self._mapper.local_table.name

    def get_key_name(self) -> str:
        return f"{self.get_table()}.{self._key_column.name}"

    def new_query(self) -> MappedQuery:
        return MappedQuery(self.session, self.model)

    def get_new(self, attributes: Optional[Mapping[str, Any]] = None):
        return self.fill(self.model(), attributes or {})

    def fill(self, entity, attributes: Mapping[str, Any]):
        known = self._mapper.attrs.keys()
        for name, value in attributes.items():
            if name not in known:
                logger.debug("Skipping unknown attribute %s for %s", name, self.model.__name__)
                continue
            setattr(entity, name, value)
        return entity

    def exists(self, entity) -> bool:
        state = inspect(entity)
        return state.has_identity and not state.was_deleted

    def get_entity_key(self, entity) -> Any:
        # Identity is read without a load, so an expired instance stays untouched
        identity = inspect(entity).identity
        if identity is not None:
            return identity[0]
        return getattr(entity, self._key_attr)

    def _row_present(self, entity) -> bool:
        with self.session.no_autoflush:
            query = self.new_query().where(self.get_key_name(), "=", self.get_entity_key(entity))
            return query.count() > 0

    def get_entity_attributes(self, entity) -> Dict[str, Any]:
        """Column attributes currently loaded on ``entity``."""
        loaded = inspect(entity).dict
        return {attr.key: loaded[attr.key] for attr in self._mapper.column_attrs if attr.key in loaded}

    def ensure_updatable(self, entity) -> None:
        if not self.exists(entity):
            raise PreconditionError(f"Cannot update non-existent {self.model.__name__}")

    def perform_create(self, entity, attributes: Mapping[str, Any]) -> bool:
        return self._perform_save(entity, attributes)

    def perform_update(self, entity, attributes: Mapping[str, Any]) -> bool:
        if not self._row_present(entity):
            logger.debug("%s row %s no longer present; skipping update", self.model.__name__, self.get_entity_key(entity))
            return False
        return self._perform_save(entity, attributes)

    def _perform_save(self, entity, attributes: Mapping[str, Any]) -> bool:
        self.fill(entity, attributes)
        return self.push(entity) if self.deep_save else self.save(entity)

    def save(self, entity) -> bool:
        try:
            self.session.add(entity)
            self.session.commit()
            self.session.refresh(entity)
        except (ObjectDeletedError, StaleDataError) as e:
            self.session.rollback()
            logger.debug("%s row vanished during save: %s", self.model.__name__, e)
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to save %s: %s", self.model.__name__, e)
            raise StorageError(f"Failed to save {self.model.__name__}: {e}") from e
        return True

    def push(self, entity) -> bool:
        for related in self._related(entity, seen={id(entity)}):
            self.session.add(related)
        return self.save(entity)

    def _related(self, entity, seen) -> Iterator[Any]:
        state = inspect(entity)
        for relationship in state.mapper.relationships:
            # Never trigger lazy loads; only objects already attached are pushed
            if relationship.key in state.unloaded:
                continue
            value = getattr(entity, relationship.key)
            if value is None:
                continue
            children = list(value) if relationship.uselist else [value]
            for child in children:
                if id(child) in seen:
                    continue
                seen.add(id(child))
                yield child
                yield from self._related(child, seen)

    def perform_delete(self, entity) -> bool:
        if not self.exists(entity):
            return False
        if not self._row_present(entity):
            logger.debug("%s row %s already gone; nothing to delete", self.model.__name__, self.get_entity_key(entity))
            return False
        try:
            self.session.delete(entity)
            self.session.commit()
        except (ObjectDeletedError, StaleDataError) as e:
            self.session.rollback()
            logger.debug("%s row vanished during delete: %s", self.model.__name__, e)
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to delete %s: %s", self.model.__name__, e)
            raise StorageError(f"Failed to delete {self.model.__name__}: {e}") from e
        return True
