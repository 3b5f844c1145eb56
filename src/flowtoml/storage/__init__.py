"""
flowtoml Storage Module.

Persists registry documents as TOML files with backup rotation.
"""

__all__ = [
    "BaseDirectoryResolver",
    "DocumentStore",
    "FixedDirectoryResolver",
    "HomeConfigResolver",
    "LocalAppDataResolver",
    "resolver_for_platform",
    "resolver_from_settings",
]

from flowtoml.storage.manager import DocumentStore
from flowtoml.storage.paths import (
    BaseDirectoryResolver,
    FixedDirectoryResolver,
    HomeConfigResolver,
    LocalAppDataResolver,
    resolver_for_platform,
    resolver_from_settings,
)
