"""
Validator contract and a pydantic-backed implementation.

Repositories only rely on the pass/fail result and the reported messages.
``replace()`` stores template values such as the table being written or the
key of the entity being updated; ``SchemaValidator`` hands them to pydantic as
validation context so field validators can read ``info.context["key"]``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Protocol, Type, runtime_checkable

from pydantic import BaseModel, ValidationError

from .errors import ErrorBag

logger = logging.getLogger(__name__)


@runtime_checkable
class Validator(Protocol):
    def valid_create(self, attributes: Mapping[str, Any]) -> bool: ...

    def valid_update(self, attributes: Mapping[str, Any]) -> bool: ...

    def replace(self, name: str, value: Any) -> None: ...

    def errors(self) -> ErrorBag: ...


class SchemaValidator:
    """Validate attribute mappings against pydantic models.

    Args:
        create_schema: model used by ``valid_create``.
        update_schema: model used by ``valid_update``; defaults to
            ``create_schema``. Update payloads are usually partial, so this is
            typically a model whose fields are all optional.
    """

    def __init__(self, create_schema: Type[BaseModel], update_schema: Optional[Type[BaseModel]] = None):
        self.create_schema = create_schema
        self.update_schema = update_schema or create_schema
        self._replacements: Dict[str, Any] = {}
        self._errors = ErrorBag()
        self._validated: Dict[str, Any] = {}

    def replace(self, name: str, value: Any) -> None:
        self._replacements[name] = value

    def get_replacements(self) -> Dict[str, Any]:
        return dict(self._replacements)

    def valid_create(self, attributes: Mapping[str, Any]) -> bool:
        return self._validate(self.create_schema, attributes)

    def valid_update(self, attributes: Mapping[str, Any]) -> bool:
        return self._validate(self.update_schema, attributes)

    def errors(self) -> ErrorBag:
        return self._errors

    def validated(self) -> Dict[str, Any]:
        """Data produced by the last successful validation (only fields that were set)."""
        return dict(self._validated)

    def _validate(self, schema: Type[BaseModel], attributes: Mapping[str, Any]) -> bool:
        self._errors = ErrorBag()
        self._validated = {}
        try:
            model = schema.model_validate(dict(attributes), context=self.get_replacements())
        except ValidationError as exc:
            self._errors = ErrorBag.from_validation_error(exc)
            logger.debug("%s rejected attributes: %s", schema.__name__, self._errors.messages())
            return False
        self._validated = model.model_dump(exclude_unset=True)
        return True
