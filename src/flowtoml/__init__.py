"""
flowtoml - TOML configuration documents addressed by handles.

Create documents in memory, set and read values, then save them to a
per-user configuration directory with backup rotation.
"""

__version__ = "0.1.0"

__all__ = [
    "DocumentRegistry",
    "DocumentStore",
    "OperationResult",
    "Settings",
    "ValueType",
    "__version__",
]

from flowtoml.config import Settings
from flowtoml.core.models import OperationResult, ValueType
from flowtoml.registry.documents import DocumentRegistry
from flowtoml.storage.manager import DocumentStore
