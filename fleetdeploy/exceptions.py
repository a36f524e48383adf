"""
FleetDeploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the installer.
"""

from typing import Optional


class FleetDeployError(Exception):
    """Base exception for all FleetDeploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(FleetDeployError):
    """Raised when configuration or local inputs are invalid or missing."""

    pass


class NetworkError(FleetDeployError):
    """Raised when a host cannot be reached or the channel drops."""

    pass


class AuthError(FleetDeployError):
    """Raised when a host rejects a credential."""

    def __init__(self, host: str, username: str, context: Optional[str] = None):
        self.host = host
        self.username = username
        super().__init__(
            f"Authentication failed for {username}@{host}", context=context
        )


class PreconditionError(FleetDeployError):
    """Raised when a required local artifact is missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing local artifacts: {', '.join(missing)}")


class TransferError(FleetDeployError):
    """Raised when pushing a file to a host fails."""

    def __init__(self, remote_path: str, context: Optional[str] = None):
        self.remote_path = remote_path
        super().__init__(f"Failed to transfer {remote_path}", context=context)


class CommandError(FleetDeployError):
    """Raised when a remote command exits non-zero."""

    def __init__(
        self,
        message: str,
        exit_status: Optional[int] = None,
        stderr: str = "",
    ):
        self.exit_status = exit_status
        self.stderr = stderr
        context = stderr.strip() or None
        if exit_status is not None:
            message = f"{message} (exit {exit_status})"
        super().__init__(message, context=context)
