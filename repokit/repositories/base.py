"""
Repository pipeline shared by every persistence strategy.

Each operation runs validate -> before hook -> strategy perform -> after hook.
Rejected attributes and writes that touch no rows come back as ``None`` /
``False`` (or raise when exception mode is on); updating an entity that was
never stored is always a ``PreconditionError``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy import MetaData, Table
from sqlalchemy.orm import Session

from repokit.config import get_settings
from repokit.criteria import Criteria, apply_criteria
from repokit.errors import ErrorBag
from repokit.exceptions import NotFoundError, ValidationFailed
from repokit.hooks import RepositoryHooks
from repokit.pagination import Page
from repokit.validation import Validator
from .mapped import MappedStrategy
from .strategy import PersistenceStrategy
from .table import TableStrategy

logger = logging.getLogger(__name__)


class Repository:
    def __init__(
        self,
        strategy: PersistenceStrategy,
        validator: Optional[Validator] = None,
        hooks: Optional[RepositoryHooks] = None,
        *,
        throw_exceptions: Optional[bool] = None,
    ):
        self.strategy = strategy
        self.validator = validator
        self.hooks = hooks or RepositoryHooks()
        if throw_exceptions is None:
            throw_exceptions = get_settings().throw_exceptions
        self.throw_exceptions = throw_exceptions
        self._errors = ErrorBag()
        self._criteria: List[Criteria] = []
        self._per_page: Optional[int] = None
        self._page = 1

        if validator is not None:
            validator.replace("table", strategy.get_table())

    @classmethod
    def for_table(
        cls,
        session: Session,
        table: Union[str, Table],
        primary_key: str = "id",
        *,
        metadata: Optional[MetaData] = None,
        validator: Optional[Validator] = None,
        hooks: Optional[RepositoryHooks] = None,
        throw_exceptions: Optional[bool] = None,
    ) -> "Repository":
        strategy = TableStrategy(session, table, primary_key=primary_key, metadata=metadata)
        return cls(strategy, validator, hooks, throw_exceptions=throw_exceptions)

    @classmethod
    def for_model(
        cls,
        session: Session,
        model,
        *,
        deep_save: Optional[bool] = None,
        validator: Optional[Validator] = None,
        hooks: Optional[RepositoryHooks] = None,
        throw_exceptions: Optional[bool] = None,
    ) -> "Repository":
        strategy = MappedStrategy(session, model, deep_save=deep_save)
        return cls(strategy, validator, hooks, throw_exceptions=throw_exceptions)

    # Configuration

    def on(self, name: str, handler: Optional[Callable]) -> "Repository":
        """Register (or clear, with ``None``) the handler for hook ``name``."""
        self.hooks.register(name, handler)
        return self

    def toggle_exceptions(self, enabled: bool = True) -> "Repository":
        self.throw_exceptions = enabled
        return self

    def paginate(self, per_page: Union[int, bool, None] = True, page: int = 1) -> "Repository":
        """Make ``get_all`` return a ``Page``.

        ``True`` uses the configured default page size; ``False``/``None``/``0``
        switches pagination off again.
        """
        if per_page is True:
            per_page = get_settings().default_per_page
        self._per_page = int(per_page) if per_page else None
        self._page = max(1, int(page))
        return self

    def push_criteria(self, criteria: Criteria) -> "Repository":
        self._criteria.append(criteria)
        return self

    def reset_criteria(self) -> "Repository":
        self._criteria = []
        return self

    def get_errors(self) -> ErrorBag:
        return self._errors

    def get_new(self, attributes: Optional[Mapping[str, Any]] = None) -> Any:
        return self.strategy.get_new(attributes)

    def new_query(self):
        return apply_criteria(self.strategy.new_query(), self._criteria)

    # Fetching

    def get_all(self):
        query = self.new_query()
        if self._per_page:
            return self._fetch_page(query)
        return self._fetch_many(query)

    def get_by_key(self, key: Any):
        query = self.new_query().where(self.strategy.get_key_name(), "=", key)
        return self._fetch_single(query)

    def get_by_attributes(self, attributes: Mapping[str, Any]):
        query = self.new_query()
        for name, value in attributes.items():
            query.where(name, "=", value)
        return self._fetch_single(query)

    def get_list(self, column: str, key: Optional[str] = None) -> Union[List[Any], Dict[Any, Any]]:
        query = self.new_query()
        self.hooks.run("before_query", query, True)
        results = query.pluck(column, key)
        self.hooks.run("after_query", results)
        return results

    def _fetch_single(self, query):
        self.hooks.run("before_query", query, False)
        raw = query.first()
        if raw is None:
            if self.throw_exceptions:
                raise NotFoundError(f"No {self.strategy.get_table()} entry matched the query")
            return None
        result = self.strategy.make_entity(raw)
        self.hooks.run("after_query", result)
        return result

    def _fetch_many(self, query) -> List[Any]:
        self.hooks.run("before_query", query, True)
        results = [self.strategy.make_entity(raw) for raw in query.get()]
        self.hooks.run("after_query", results)
        return results

    def _fetch_page(self, query) -> Page:
        self.hooks.run("before_query", query, True)
        results = query.paginate(self._per_page, self._page).map(self.strategy.make_entity)
        self.hooks.run("after_query", results)
        return results

    # Writing

    def create(self, attributes: Mapping[str, Any]):
        """Create and store a new entity; ``None`` when validation or the insert fails."""
        entity = self.get_new()
        if self._create(entity, attributes, attributes):
            return entity
        return None

    def update(self, entity, attributes: Mapping[str, Any]) -> bool:
        self.strategy.ensure_updatable(entity)

        if self.validator is not None:
            self.validator.replace("key", self.strategy.get_entity_key(entity))
        if not self._passes("update", attributes):
            return False

        self.hooks.run("before_update", entity, attributes)
        if not self.strategy.perform_update(entity, attributes):
            logger.debug("Update on %s affected nothing", self.strategy.get_table())
            return False
        self.hooks.run("after_update", entity)
        return True

    def delete(self, entity) -> bool:
        return bool(self.strategy.perform_delete(entity))

    def persist(self, entity) -> bool:
        """Update ``entity`` when it has a key, otherwise create it in place."""
        if self.strategy.get_entity_key(entity) is not None:
            return self.update(entity, {})
        return self._create(entity, {}, self.strategy.get_entity_attributes(entity))

    def _create(self, entity, attributes: Mapping[str, Any], payload: Mapping[str, Any]) -> bool:
        if not self._passes("create", payload):
            return False

        self.hooks.run("before_create", entity, attributes)
        if not self.strategy.perform_create(entity, attributes):
            logger.debug("Create on %s stored nothing", self.strategy.get_table())
            return False
        self.hooks.run("after_create", entity)
        return True

    def _passes(self, action: str, attributes: Mapping[str, Any]) -> bool:
        if self.validator is None:
            return True
        check = self.validator.valid_create if action == "create" else self.validator.valid_update
        if check(attributes):
            return True

        errors = self.validator.errors()
        self._errors = errors if isinstance(errors, ErrorBag) else ErrorBag(errors)
        logger.info(
            "Validation failed for %s on %s: %s", action, self.strategy.get_table(), self._errors.messages()
        )
        if self.throw_exceptions:
            raise ValidationFailed(self._errors, action)
        return False
