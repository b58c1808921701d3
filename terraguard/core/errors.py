"""
Errors raised by the Terraform supervisory layer.
"""

from typing import List, Optional


class TerraguardError(Exception):
    """Base class for all terraguard errors."""
    pass


class ConfigurationError(TerraguardError):
    """Raised when required configuration is missing or invalid."""
    pass


class IncompatibleVersionError(TerraguardError):
    """
    Raised when the installed Terraform version does not satisfy the
    version required by the configuration.
    """

    def __init__(self, installed_version: str, required_version: str):
        self.installed_version = installed_version
        self.required_version = required_version
        super().__init__(
            f"Installed version {installed_version} is incompatible "
            f"with required version {required_version}."
        )


class ProcessExitError(TerraguardError):
    """Raised when a spawned process exits with a non-zero code."""

    def __init__(self, command: str, args: List[str], result):
        self.command = command
        self.arguments = list(args)
        self.result = result
        super().__init__(
            f"Command '{command} {' '.join(args)}' exited with code {result.exit_code}."
        )

    @property
    def exit_code(self) -> int:
        return self.result.exit_code


class RestorationError(TerraguardError):
    """
    Raised when the previously active workspace could not be selected again
    after a workspace-scoped operation.

    ``operation_error`` holds the error raised by the wrapped operation, if any.
    The select failure itself is available as ``__cause__``.
    """

    def __init__(self, workspace: str, operation_error: Optional[BaseException] = None):
        self.workspace = workspace
        self.operation_error = operation_error
        message = f"Failed to restore Terraform workspace '{workspace}'."
        if operation_error is not None:
            message += f" The operation had also failed: {operation_error}"
        super().__init__(message)


class LintError(TerraguardError):
    """Raised when validation or format checking of a project fails."""
    pass
