"""
Schemaless records produced by table-backed repositories.
"""
from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Mapping, Optional


class Record(MutableMapping):
    """Attribute bag for one table row.

    Field access goes through the mapping protocol (``record["name"]``); the
    primary key has dedicated accessors so callers never need to know the
    configured key column.
    """

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, key_name: str = "id"):
        self._attributes: Dict[str, Any] = dict(attributes or {})
        self.key_name = key_name

    def get_key(self) -> Any:
        return self._attributes.get(self.key_name)

    def set_key(self, value: Any) -> None:
        self._attributes[self.key_name] = value

    def has_key(self) -> bool:
        return self.get_key() is not None

    def fill(self, attributes: Mapping[str, Any]) -> "Record":
        for name, value in attributes.items():
            self._attributes[name] = value
        return self

    def get_attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def __getitem__(self, name: str) -> Any:
        return self._attributes[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._attributes[name] = value

    def __delitem__(self, name: str) -> None:
        del self._attributes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"Record({self._attributes!r}, key_name={self.key_name!r})"
