"""
Query objects handed to repository hooks.

``TableQuery`` targets a Core ``Table`` and returns plain dict rows;
``MappedQuery`` targets a declarative class and returns instances. Both keep
their filter state until executed and are built fresh for every repository
operation.
"""
from __future__ import annotations

import logging
import operator as op
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy import Table, delete as sa_delete, func, insert, select, update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from repokit.exceptions import ConfigurationError, StorageError
from repokit.pagination import Page

logger = logging.getLogger(__name__)

_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "=": op.eq,
    "==": op.eq,
    "!=": op.ne,
    "<>": op.ne,
    "<": op.lt,
    "<=": op.le,
    ">": op.gt,
    ">=": op.ge,
    "like": lambda column, value: column.like(value),
    "not like": lambda column, value: column.not_like(value),
    "in": lambda column, value: column.in_(value),
    "not in": lambda column, value: column.not_in(value),
}


def _split_qualified(name: str):
    if "." in name:
        table_name, column_name = name.rsplit(".", 1)
        return table_name, column_name
    return None, name


class _BaseQuery:
    def __init__(self, session: Session):
        self.session = session
        self._wheres: List[Any] = []
        self._orders: List[Any] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    @property
    def table_name(self) -> str:
        raise NotImplementedError

    def _resolve(self, column_name: str):
        raise NotImplementedError

    def _base_select(self) -> Select:
        raise NotImplementedError

    def _fetch(self, stmt: Select) -> List[Any]:
        raise NotImplementedError

    def column(self, name: str):
        table_name, column_name = _split_qualified(name)
        if table_name is not None and table_name != self.table_name:
            raise ConfigurationError(f"Column '{name}' does not belong to table '{self.table_name}'")
        return self._resolve(column_name)

    def where(self, column: str, operator: str, value: Any):
        try:
            compare = _OPERATORS[operator.lower()]
        except KeyError:
            raise ConfigurationError(f"Unsupported operator '{operator}'") from None
        self._wheres.append(compare(self.column(column), value))
        return self

    def where_clause(self, clause):
        """Add a prebuilt SQLAlchemy boolean expression."""
        self._wheres.append(clause)
        return self

    def order_by(self, column: str, direction: str = "asc"):
        col = self.column(column)
        self._orders.append(col.desc() if direction.lower() == "desc" else col.asc())
        return self

    def take(self, limit: Optional[int]):
        self._limit = limit
        return self

    def skip(self, offset: Optional[int]):
        self._offset = offset
        return self

    def _filtered(self, stmt: Select) -> Select:
        if self._wheres:
            stmt = stmt.where(*self._wheres)
        return stmt

    def _statement(self, limit: Optional[int] = None, offset: Optional[int] = None) -> Select:
        stmt = self._filtered(self._base_select())
        if self._orders:
            stmt = stmt.order_by(*self._orders)
        limit = self._limit if limit is None else limit
        offset = self._offset if offset is None else offset
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return stmt

    def get(self) -> List[Any]:
        return self._fetch(self._statement())

    def first(self) -> Optional[Any]:
        rows = self._fetch(self._statement(limit=1))
        return rows[0] if rows else None

    def count(self) -> int:
        subquery = self._filtered(self._base_select()).subquery()
        return int(self.session.scalar(select(func.count()).select_from(subquery)) or 0)

    def paginate(self, per_page: int, page: int = 1) -> Page:
        page = max(1, int(page))
        total = self.count()
        items = self._fetch(self._statement(limit=per_page, offset=(page - 1) * per_page))
        return Page(items=items, total=total, per_page=per_page, current_page=page)

    def pluck(self, column: str, key: Optional[str] = None) -> Union[List[Any], Dict[Any, Any]]:
        value_col = self.column(column)
        if key is None:
            stmt = self._filtered(select(value_col))
        else:
            stmt = self._filtered(select(self.column(key), value_col))
        if self._orders:
            stmt = stmt.order_by(*self._orders)
        rows = self.session.execute(stmt).all()
        if key is None:
            return [row[0] for row in rows]
        return {row[0]: row[1] for row in rows}


class TableQuery(_BaseQuery):
    def __init__(self, session: Session, table: Table):
        super().__init__(session)
        self.table = table

    @property
    def table_name(self) -> str:
        return self.table.name

    def _resolve(self, column_name: str):
        try:
            return self.table.c[column_name]
        except KeyError:
            raise ConfigurationError(f"Unknown column '{column_name}' on table '{self.table.name}'") from None

    def _base_select(self) -> Select:
        return select(self.table)

    def _fetch(self, stmt: Select) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.session.execute(stmt).mappings()]

    def insert_get_id(self, attributes: Mapping[str, Any]) -> Optional[Any]:
        """Insert one row and return its generated primary key (``None`` when none came back)."""
        inserted = self._write(
            "insert",
            insert(self.table).values(**dict(attributes)),
            lambda result: result.inserted_primary_key,
        )
        if not inserted:
            return None
        return inserted[0]

    def update(self, attributes: Mapping[str, Any]) -> int:
        stmt = self._filtered(sa_update(self.table)).values(**dict(attributes))
        return self._write("update", stmt, lambda result: result.rowcount)

    def delete(self) -> int:
        stmt = self._filtered(sa_delete(self.table))
        return self._write("delete", stmt, lambda result: result.rowcount)

    def _write(self, action: str, stmt, extract: Callable[[Any], Any]):
        try:
            value = extract(self.session.execute(stmt))
            self.session.commit()
            return value
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to %s on table %s: %s", action, self.table.name, e)
            raise StorageError(f"Failed to {action} on table {self.table.name}: {e}") from e


class MappedQuery(_BaseQuery):
    def __init__(self, session: Session, model):
        super().__init__(session)
        self.model = model

    @property
    def table_name(self) -> str:
        return self.model.__table__.name

    def _resolve(self, column_name: str):
        try:
            return self.model.__table__.c[column_name]
        except KeyError:
            pass
        attr = getattr(self.model, column_name, None)
        if attr is None or not hasattr(attr, "property"):
            raise ConfigurationError(f"Unknown column '{column_name}' on model {self.model.__name__}")
        return attr

    def _base_select(self) -> Select:
        return select(self.model)

    def _fetch(self, stmt: Select) -> List[Any]:
        return list(self.session.scalars(stmt).all())
