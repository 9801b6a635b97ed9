"""Exception hierarchy shared by every ferzcli module.

Catalog and profiler errors are deterministic: the same input always
raises the same error, so callers surface them unchanged.  Network errors
are raised by the assist client and caught at the CLI boundary.
"""

from __future__ import annotations

from pathlib import Path


class FerzError(Exception):
    """Base class for all errors raised by ferzcli."""


class ConfigurationError(FerzError):
    """Raised when required configuration (API key, project markers) is missing."""


class UnsupportedStack(FerzError):
    """Raised when a stack tag or ``(kind, stack)`` pair has no template."""

    def __init__(self, stack: str, kind: str | None = None) -> None:
        self.stack = stack
        self.kind = kind
        if kind:
            message = f"No {kind} template for stack '{stack}'"
        else:
            message = f"Unsupported stack: '{stack}'"
        super().__init__(message)


class UnsupportedEndpoint(FerzError):
    """Raised for an endpoint token outside the fixed endpoint table."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(
            f"Unsupported endpoint '{token}' "
            "(expected one of: index, show, store, update, destroy)"
        )


class ExternalProcessError(FerzError):
    """Raised when a shell command exits with a non-zero status."""

    def __init__(self, command: str, exit_code: int, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"Command failed with exit code {exit_code}: {command}"
        if stderr:
            message += f"\n{stderr[:500]}"
        super().__init__(message)


class NetworkError(FerzError):
    """Raised when the remote assist API cannot be reached or misbehaves."""


class AuthError(NetworkError):
    """Raised when the remote assist API rejects the configured key."""


class RequestTimeout(NetworkError):
    """Raised when the remote assist API does not answer in time."""


class FileSystemError(FerzError):
    """Raised when writing a generated artifact fails.

    Carries the artifact kind so callers can tell which step of a
    scaffold run aborted.
    """

    def __init__(self, kind: str, path: str | Path, cause: OSError) -> None:
        self.kind = kind
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write {kind} artifact {self.path}: {cause}")
