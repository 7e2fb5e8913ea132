"""Data context - the name -> value bindings a template renders against."""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional


class DataContext(Mapping[str, Any]):
    """Bindings merged on every assignment, last assignment wins."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def assign(self, name: str | Mapping[str, Any], value: Any = None) -> "DataContext":
        """Bind a single name, or shallow-merge a mapping of bindings."""
        if isinstance(name, Mapping):
            self._data.update(name)
        else:
            self._data[name] = value
        return self

    def merged(self, data: Optional[Mapping[str, Any]] = None) -> "DataContext":
        """A new context with data merged over a copy of this one."""
        context = DataContext(self._data)
        if data:
            context.assign(data)
        return context

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"DataContext({self._data!r})"
