"""
flowtoml Exception Hierarchy.

Exceptions are internal to the package: the public registry and store
operations translate them into the error enums in ``flowtoml.core.models``.
``OperationFailedError`` is the only one a caller sees, and only when it
opts in through ``OperationResult.unwrap()``.
"""

from enum import Enum
from typing import Any


class FlowTomlError(Exception):
    """Base exception for all flowtoml errors; details are shown by str()."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        pairs = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({pairs})"


class BasePathError(FlowTomlError):
    """
    Raised when the per-user configuration directory cannot be resolved.

    Covers a missing environment variable (HOME, LOCALAPPDATA) as well as
    failure to create the directory.
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if path:
            details["path"] = path

        super().__init__(message, details=details)
        self.env_var = env_var
        self.path = path


class ConfigurationError(FlowTomlError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - An environment variable holds an invalid value
    - A settings field fails validation
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            config_key: Settings field if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


class OperationFailedError(FlowTomlError):
    """Raised by ``OperationResult.unwrap()`` on a failed result."""

    def __init__(self, error: Enum):
        super().__init__(
            f"Operation failed: {error.value}",
            details={"error": error.value, "error_type": type(error).__name__},
        )
        self.error = error
