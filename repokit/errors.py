"""
Validation error bag.

Maps each field name to the ordered list of human-readable messages reported
for it.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional

from pydantic import ValidationError


class ErrorBag(Mapping):
    def __init__(self, messages: Optional[Mapping[str, Iterable[str]]] = None):
        self._messages: Dict[str, List[str]] = {}
        for field, field_messages in (messages or {}).items():
            if isinstance(field_messages, str):
                field_messages = [field_messages]
            for message in field_messages:
                self.add(field, message)

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "ErrorBag":
        """Build a bag from a pydantic ``ValidationError``.

        Nested locations are joined with dots (``address.city``); errors raised
        by model-level validators have an empty location and land under
        ``__root__``.
        """
        bag = cls()
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            bag.add(field, error.get("msg", "Invalid value"))
        return bag

    def add(self, field: str, message: str) -> "ErrorBag":
        messages = self._messages.setdefault(field, [])
        if message not in messages:
            messages.append(message)
        return self

    def has(self, field: str) -> bool:
        return bool(self._messages.get(field))

    def first(self, field: Optional[str] = None) -> Optional[str]:
        if field is None:
            for messages in self._messages.values():
                if messages:
                    return messages[0]
            return None
        messages = self._messages.get(field) or []
        return messages[0] if messages else None

    def get_messages(self, field: str) -> List[str]:
        return list(self._messages.get(field, []))

    def all(self) -> List[str]:
        return [message for messages in self._messages.values() for message in messages]

    def messages(self) -> Dict[str, List[str]]:
        return {field: list(messages) for field, messages in self._messages.items()}

    def is_empty(self) -> bool:
        return not any(self._messages.values())

    def __getitem__(self, field: str) -> List[str]:
        return list(self._messages[field])

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"ErrorBag({self._messages!r})"
