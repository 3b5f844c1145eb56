"""
Core data models for flowtoml.

Every public operation returns an OperationResult holding either a value or
one member of a closed, per-operation error enum.
"""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from flowtoml.core.exceptions import OperationFailedError

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class SetValueError(Enum):
    """Failures of DocumentRegistry.set_value."""

    DOCUMENT_NOT_FOUND = "document_not_found"
    KEY_EMPTY = "key_empty"


class GetValueError(Enum):
    """Failures of DocumentRegistry.get_value."""

    DOCUMENT_NOT_FOUND = "document_not_found"
    KEY_EMPTY = "key_empty"
    VALUE_NOT_FOUND = "value_not_found"
    VALUE_TYPE_MISMATCH = "value_type_mismatch"


class PathError(Enum):
    """Failures of base and documents directory resolution."""

    DIRECTORY_NAME_EMPTY = "directory_name_empty"
    FAILED_TO_GET_BASE_PATH = "failed_to_get_base_path"


class SaveDocumentError(Enum):
    """Failures of DocumentStore.save_document."""

    DOCUMENT_NOT_FOUND = "document_not_found"
    DOCUMENT_IS_EMPTY = "document_is_empty"
    FILE_NAME_EMPTY = "file_name_empty"
    DIRECTORY_NAME_EMPTY = "directory_name_empty"
    FAILED_TO_GET_BASE_PATH = "failed_to_get_base_path"
    UNABLE_TO_CREATE_FILE = "unable_to_create_file"


class OpenDocumentError(Enum):
    """Failures of DocumentStore.open_document."""

    FILE_NAME_EMPTY = "file_name_empty"
    DIRECTORY_NAME_EMPTY = "directory_name_empty"
    FAILED_TO_GET_BASE_PATH = "failed_to_get_base_path"
    FILE_NOT_FOUND = "file_not_found"
    PARSING_FAILED = "parsing_failed"


class ListDocumentsError(Enum):
    """Failures of DocumentStore.list_documents."""

    DIRECTORY_NAME_EMPTY = "directory_name_empty"
    FAILED_TO_GET_BASE_PATH = "failed_to_get_base_path"


class DeleteDocumentError(Enum):
    """Failures of DocumentStore.delete_document."""

    FILE_NAME_EMPTY = "file_name_empty"
    DIRECTORY_NAME_EMPTY = "directory_name_empty"
    FAILED_TO_GET_BASE_PATH = "failed_to_get_base_path"
    FILE_NOT_FOUND = "file_not_found"
    UNABLE_TO_DELETE_FILE = "unable_to_delete_file"


class ValueType(Enum):
    """TOML value kinds used for type-matched reads."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    ARRAY = "array"
    TABLE = "table"

    @staticmethod
    def of(value: Any) -> "ValueType | None":
        """Classify a Python value, or return None if TOML cannot hold it."""
        # Order matters: bool is an int, datetime is a date.
        match value:
            case bool():
                return ValueType.BOOLEAN
            case int():
                return ValueType.INTEGER
            case float():
                return ValueType.FLOAT
            case str():
                return ValueType.STRING
            case datetime.datetime():
                return ValueType.DATETIME
            case datetime.date():
                return ValueType.DATE
            case datetime.time():
                return ValueType.TIME
            case list() | tuple():
                return ValueType.ARRAY
            case dict():
                return ValueType.TABLE
        return None

    def matches(self, value: Any) -> bool:
        """Check whether a stored value is exactly this kind."""
        return ValueType.of(value) is self


@dataclass(frozen=True)
class OperationResult(Generic[T, E]):
    """Outcome of a registry or store operation."""

    value: T | None = None
    error: E | None = None

    @property
    def ok(self) -> bool:
        """True when the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "OperationResult[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "OperationResult[T, E]":
        return cls(error=error)

    def unwrap(self) -> T | None:
        """
        Return the value or raise.

        Raises:
            OperationFailedError: If the result carries an error
        """
        if self.error is not None:
            raise OperationFailedError(self.error)
        return self.value
