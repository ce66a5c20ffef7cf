"""
Custom exception hierarchy for upkeep.

This module defines structured exception types used across upkeep.
All exceptions inherit from :class:`UpkeepError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional

#: Grammar shown to the user alongside a rejected exclusion token.
EXCLUSION_FORMAT_HINT = "[<location>#]<dependencyPattern>[@<version>]"


class UpkeepError(Exception):
    """Base exception for all upkeep errors.

    All upkeep-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class InvalidExclusionFormat(UpkeepError):
    """Raised when an ``--exclude`` token does not follow the rule grammar.

    The message carries the offending token verbatim so the user can spot
    it in a long comma-separated list.

    Args:
        token: The rejected exclusion token.
    """

    __slots__ = ("token",)

    def __init__(self, token: str) -> None:
        super().__init__(
            f"Invalid dependency format: {token}. "
            f"Expected format: {EXCLUSION_FORMAT_HINT}"
        )
        self.token = token


class UnknownWorkspace(UpkeepError):
    """Raised when a requested workspace does not exist in the project.

    Args:
        name: Workspace name as given on the command line.
        project_cwd: Root directory of the project that was searched.
    """

    __slots__ = ("name", "project_cwd")

    def __init__(self, name: str, *, project_cwd: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "project", project_cwd)

        super().__init__(f"Workspace not found: {name}", details)

        self.name = name
        self.project_cwd = project_cwd


class WorkspaceRequiredError(UpkeepError):
    """Raised when the command runs outside of every project workspace.

    Args:
        project_cwd: Root directory of the detected project.
        cwd: Directory the command was invoked from.
    """

    __slots__ = ("project_cwd", "cwd")

    def __init__(self, project_cwd: str, cwd: str) -> None:
        super().__init__(
            f"This command can only be run from within a workspace of "
            f"your project ({cwd} isn't a workspace of {project_cwd})."
        )
        self.project_cwd = project_cwd
        self.cwd = cwd


class ManifestError(UpkeepError):
    """Raised when a ``package.json`` manifest cannot be located or parsed.

    Args:
        message: Error description.
        manifest_path: Path to the manifest being read.
    """

    __slots__ = ("manifest_path",)

    def __init__(
        self,
        message: str,
        *,
        manifest_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "manifest", manifest_path)

        super().__init__(message, details)

        self.manifest_path = manifest_path


class NetworkError(UpkeepError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryError(NetworkError):
    """Raised for failures related to the package registry API.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class ConfigError(UpkeepError):
    """Raised when configuration cannot be loaded or is invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file involved.
        option: Name of the offending option, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class FileOperationError(UpkeepError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/backup).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
