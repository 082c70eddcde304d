"""Runtime data carrier passed into rules.

A context is created per validation operation (or shared across related
rules) and owned by the caller. Rules may read and write it, which lets a
producer rule hand data to a consumer rule evaluated after it.

Storage is guarded by a lock, so parallel async evaluation and threads
may share one context. Ordering of writes between concurrently evaluated
rules is still not defined: last set wins.
"""

from __future__ import annotations

import threading
from typing import Any, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_MISSING = object()

# Reserved key holding the payload of a TypedBusinessRuleContext.
TYPED_DATA_KEY = "__typed_data__"


class BusinessRuleContext:
    """String-keyed bag of values.

    ``get`` raises on a missing key or a failed type check; that is a
    programming error. ``try_get`` is the non-raising path.

    Usage::

        ctx = BusinessRuleContext()
        ctx.set("limit", 1000)
        limit = ctx.get("limit", int)
        found, user = ctx.try_get("user")
    """

    def __init__(self, items: Optional[dict[str, Any]] = None):
        self._items: dict[str, Any] = dict(items or {})
        self._lock = threading.RLock()

    def get(self, key: str, expected_type: Optional[type[T]] = None) -> Any:
        """Return the value stored under ``key``.

        Raises KeyError when the key is absent and TypeError when
        ``expected_type`` is given and the value is not an instance of it.
        """
        with self._lock:
            value = self._items.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        if expected_type is not None and not isinstance(value, expected_type):
            raise TypeError(
                f"Context value '{key}' is {type(value).__name__}, "
                f"expected {expected_type.__name__}"
            )
        return value

    def try_get(self, key: str, expected_type: Optional[type[T]] = None) -> tuple[bool, Any]:
        """Return ``(True, value)`` or ``(False, None)``. Never raises."""
        with self._lock:
            value = self._items.get(key, _MISSING)
        if value is _MISSING:
            return False, None
        if expected_type is not None and not isinstance(value, expected_type):
            return False, None
        return True, value

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""
        with self._lock:
            self._items[key] = value

    def remove(self, key: str) -> bool:
        """Drop ``key``. Returns False when it was not present."""
        with self._lock:
            return self._items.pop(key, _MISSING) is not _MISSING

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={self.keys()!r})"


class TypedBusinessRuleContext(BusinessRuleContext, Generic[T]):
    """Context wrapping one strongly typed payload object.

    The payload is also stored under TYPED_DATA_KEY, so rules written
    against the plain key-value API can still reach it.
    """

    def __init__(self, data: T, items: Optional[dict[str, Any]] = None):
        if data is None:
            raise ValueError("TypedBusinessRuleContext requires a data object")
        super().__init__(items)
        self._data = data
        self.set(TYPED_DATA_KEY, data)

    @property
    def data(self) -> T:
        return self._data
