"""
Table-backed persistence.

Writes go through SQLAlchemy Core against a single table and entities are
schemaless ``Record`` mappings. Useful where mapping a class is not worth it
or where the extra ORM overhead matters.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from sqlalchemy import MetaData, Table
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session

from repokit.db.query import TableQuery
from repokit.exceptions import ConfigurationError, PreconditionError
from repokit.records import Record
from .strategy import PersistenceStrategy

logger = logging.getLogger(__name__)


class TableStrategy(PersistenceStrategy):
    """Persist ``Record`` entities into one table.

    ``table`` and ``primary_key`` may be given to the constructor or declared
    as class attributes on a subclass. A table given by name is looked up in
    ``metadata`` first and reflected from the session's bind otherwise.
    """

    table: Optional[str] = None
    primary_key: str = "id"

    def __init__(
        self,
        session: Session,
        table: Union[str, Table, None] = None,
        primary_key: Optional[str] = None,
        metadata: Optional[MetaData] = None,
    ):
        table = table if table is not None else type(self).table
        if table is None or (isinstance(table, str) and not table.strip()):
            raise ConfigurationError(f"{type(self).__name__}.table must be defined.")
        self.primary_key = primary_key or type(self).primary_key
        self.metadata = metadata
        self.set_session(session)
        self.set_table(table)

    def set_session(self, session: Session) -> "TableStrategy":
        self.session = session
        return self

    def get_session(self) -> Session:
        return self.session

    def set_table(self, table: Union[str, Table]) -> "TableStrategy":
        if isinstance(table, Table):
            resolved = table
        elif self.metadata is not None and table in self.metadata.tables:
            resolved = self.metadata.tables[table]
        else:
            try:
                resolved = Table(str(table), self.metadata or MetaData(), autoload_with=self.session.get_bind())
            except NoSuchTableError:
                raise ConfigurationError(f"Table '{table}' does not exist") from None
        if self.primary_key not in resolved.c:
            raise ConfigurationError(f"Table '{resolved.name}' has no column '{self.primary_key}'")
        self._table = resolved
        return self

    def get_table(self) -> str:
        return self._table.name

    def get_table_object(self) -> Table:
        return self._table

    def get_key_name(self) -> str:
        return f"{self._table.name}.{self.primary_key}"

    def new_query(self) -> TableQuery:
        return TableQuery(self.session, self._table)

    def get_new(self, attributes: Optional[Mapping[str, Any]] = None) -> Record:
        return Record(attributes or {}, key_name=self.primary_key)

    def make_entity(self, raw: Mapping[str, Any]) -> Record:
        return self.get_new(raw)

    def get_entity_key(self, entity: Record) -> Any:
        return entity.get_key()

    def get_entity_attributes(self, entity: Record) -> Dict[str, Any]:
        return entity.get_attributes()

    def ensure_updatable(self, entity: Record) -> None:
        if entity.get_key() is None:
            raise PreconditionError(f"Cannot update a {self._table.name} record without '{self.primary_key}'")

    def perform_create(self, entity: Record, attributes: Mapping[str, Any]) -> bool:
        entity.fill(attributes)
        values = entity.get_attributes()
        if values.get(self.primary_key) is None:
            values.pop(self.primary_key, None)
        key = self.new_query().insert_get_id(values)
        if key is None:
            logger.debug("Insert into %s returned no key", self._table.name)
            return False
        entity.set_key(key)
        return True

    def perform_update(self, entity: Record, attributes: Mapping[str, Any]) -> bool:
        entity.fill(attributes)
        affected = (
            self.new_query()
            .where(self.get_key_name(), "=", entity.get_key())
            .update(entity.get_attributes())
        )
        return affected > 0

    def perform_delete(self, entity: Record) -> bool:
        key = entity.get_key()
        if key is None:
            return False
        affected = self.new_query().where(self.get_key_name(), "=", key).delete()
        return affected > 0
