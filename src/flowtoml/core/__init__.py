"""
flowtoml Core Module.

Result values, error enums and the internal exception hierarchy.
"""

__all__ = [
    "OperationResult",
    "ValueType",
    # Error enums
    "SetValueError",
    "GetValueError",
    "PathError",
    "SaveDocumentError",
    "OpenDocumentError",
    "ListDocumentsError",
    "DeleteDocumentError",
    # Exceptions
    "FlowTomlError",
    "BasePathError",
    "ConfigurationError",
    "OperationFailedError",
]

from flowtoml.core.exceptions import (
    BasePathError,
    ConfigurationError,
    FlowTomlError,
    OperationFailedError,
)
from flowtoml.core.models import (
    DeleteDocumentError,
    GetValueError,
    ListDocumentsError,
    OpenDocumentError,
    OperationResult,
    PathError,
    SaveDocumentError,
    SetValueError,
    ValueType,
)
