"""
Base directory resolution.

One resolver per platform family, chosen once at startup:

- Windows: %LOCALAPPDATA%
- everything else: $HOME/.config
"""

import logging
import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

from flowtoml.config import Settings
from flowtoml.core.exceptions import BasePathError

logger = logging.getLogger(__name__)


class BaseDirectoryResolver(ABC):
    """Strategy returning the per-user configuration root."""

    @abstractmethod
    def locate(self) -> Path:
        """Return the root path without touching the filesystem."""

    def resolve(self) -> Path:
        """
        Return the root path, creating it if absent.

        Raises:
            BasePathError: If the path is unknown or cannot be created
        """
        path = self.locate()
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create config directory {path}: {e}")
            raise BasePathError(
                f"Unable to create config directory: {e}", path=str(path)
            ) from e
        return path


class _EnvDirectoryResolver(BaseDirectoryResolver):
    env_var: str = ""
    subdirectory: str = ""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ

    def locate(self) -> Path:
        environ = os.environ if self._environ is None else self._environ
        root = environ.get(self.env_var, "")
        if not root:
            logger.error(f"Environment variable {self.env_var} is not set")
            raise BasePathError(
                f"Environment variable {self.env_var} is not set",
                env_var=self.env_var,
            )
        path = Path(root)
        return path / self.subdirectory if self.subdirectory else path


class LocalAppDataResolver(_EnvDirectoryResolver):
    """Windows local application data directory."""

    env_var = "LOCALAPPDATA"


class HomeConfigResolver(_EnvDirectoryResolver):
    """$HOME/.config on Linux and other POSIX systems."""

    env_var = "HOME"
    subdirectory = ".config"


class FixedDirectoryResolver(BaseDirectoryResolver):
    """Always resolves to the given directory."""

    def __init__(self, path: Path | str):
        self._path = Path(path)

    def locate(self) -> Path:
        return self._path


def resolver_for_platform(
    platform: str | None = None, environ: Mapping[str, str] | None = None
) -> BaseDirectoryResolver:
    """Pick the resolver for a sys.platform value (defaults to the current one)."""
    platform = platform or sys.platform
    if platform.startswith("win") or platform == "cygwin":
        return LocalAppDataResolver(environ)
    return HomeConfigResolver(environ)


def resolver_from_settings(settings: Settings) -> BaseDirectoryResolver:
    """Use the configured base directory if any, else the platform default."""
    if settings.base_dir is not None:
        return FixedDirectoryResolver(settings.base_dir)
    return resolver_for_platform()
