"""
Document Registry - in-memory TOML documents addressed by integer handles.

Handles are issued from a counter that only increases, so a discarded
handle is never handed out again.
"""

import copy
import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from flowtoml.core.models import (
    GetValueError,
    OperationResult,
    SetValueError,
    ValueType,
)

logger = logging.getLogger(__name__)

Document = dict[str, Any]

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _is_storable(value: Any) -> bool:
    kind = ValueType.of(value)
    if kind is None:
        return False
    if kind is ValueType.INTEGER:
        return _INT64_MIN <= value <= _INT64_MAX
    if kind is ValueType.ARRAY:
        return all(_is_storable(item) for item in value)
    if kind is ValueType.TABLE:
        return all(isinstance(k, str) and _is_storable(v) for k, v in value.items())
    return True


class DocumentRegistry:
    """
    Thread-safe registry of open TOML documents.

    A single re-entrant lock guards the handle map and the counter. The
    lock is re-entrant because DocumentStore calls close() and
    new_document() while it already holds the lock through access().
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: dict[int, Document] = {}
        self._next_handle = itertools.count()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, int) and self.is_registered(handle)

    def new_document(self) -> int:
        """Register an empty document and return its handle."""
        with self._lock:
            handle = next(self._next_handle)
            self._documents[handle] = {}
        logger.debug(f"Registered new document {handle}")
        return handle

    def is_registered(self, handle: int) -> bool:
        """Check whether a handle maps to an open document."""
        with self._lock:
            return handle in self._documents

    def handles(self) -> list[int]:
        """Return the handles of all open documents."""
        with self._lock:
            return sorted(self._documents)

    def snapshot(self, handle: int) -> Document | None:
        """Return a deep copy of a document, or None for unknown handles."""
        with self._lock:
            data = self._documents.get(handle)
            return copy.deepcopy(data) if data is not None else None

    @contextmanager
    def access(self, handle: int) -> Iterator[Document | None]:
        """Yield the live document (or None) with the registry locked."""
        with self._lock:
            yield self._documents.get(handle)

    def close(self, handle: int) -> bool:
        """Discard a document. Returns whether the handle was open."""
        with self._lock:
            removed = self._documents.pop(handle, None) is not None
        if removed:
            logger.debug(f"Closed document {handle}")
        return removed

    def set_value(
        self, handle: int, key: str, value: Any, section: str = ""
    ) -> OperationResult[None, SetValueError]:
        """
        Set a value at the top level or inside a single-level section.

        A non-table value stored under the section name is replaced by a
        new table. The value is stored as a deep copy.

        Values TOML cannot hold (None, arbitrary objects, integers outside
        the signed 64-bit range) are stored but logged as a warning; a later
        save either fails with UNABLE_TO_CREATE_FILE or writes a file other
        TOML readers reject.
        """
        if not key:
            return OperationResult.failure(SetValueError.KEY_EMPTY)

        with self.access(handle) as data:
            if data is None:
                logger.debug(f"set_value on unknown document {handle}")
                return OperationResult.failure(SetValueError.DOCUMENT_NOT_FOUND)

            if not _is_storable(value):
                logger.warning(
                    f"Value for '{key}' in document {handle} cannot be saved as TOML: "
                    f"{type(value).__name__}"
                )

            try:
                value = copy.deepcopy(value)
            except (TypeError, copy.Error) as e:
                logger.warning(f"Storing '{key}' in document {handle} without a copy: {e}")
            if not section:
                data[key] = value
            else:
                table = data.get(section)
                if not isinstance(table, dict):
                    table = data[section] = {}
                table[key] = value

        return OperationResult.success()

    def get_value(
        self,
        handle: int,
        key: str,
        value_type: ValueType | None = None,
        section: str = "",
    ) -> OperationResult[Any, GetValueError]:
        """
        Read a value addressed the same way as set_value.

        When value_type is given the stored value must be exactly that TOML
        kind. Arrays and tables are returned as copies.
        """
        if not key:
            return OperationResult.failure(GetValueError.KEY_EMPTY)

        with self.access(handle) as data:
            if data is None:
                return OperationResult.failure(GetValueError.DOCUMENT_NOT_FOUND)

            table = data.get(section) if section else data
            if not isinstance(table, dict) or key not in table:
                return OperationResult.failure(GetValueError.VALUE_NOT_FOUND)

            value = table[key]
            if value_type is not None and not value_type.matches(value):
                logger.debug(
                    f"Type mismatch for '{key}' in document {handle}: "
                    f"wanted {value_type.value}, stored {type(value).__name__}"
                )
                return OperationResult.failure(GetValueError.VALUE_TYPE_MISMATCH)

            return OperationResult.success(copy.deepcopy(value))
