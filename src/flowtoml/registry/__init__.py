"""
flowtoml Registry Module.

Holds open TOML documents in memory, addressed by integer handles.
"""

__all__ = [
    "Document",
    "DocumentRegistry",
]

from flowtoml.registry.documents import Document, DocumentRegistry
