"""Error types and message formatting for easyinstaller.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Include actionable hints where helpful
"""

from pathlib import Path

from easyinstaller.config import ConfigError


class ManifestValidationError(ConfigError):
    """A manifest parsed but is structurally incomplete or malformed."""


class InstallerError(Exception):
    """Base class for errors raised while running an installation."""


class PathEscapeError(InstallerError):
    """A manifest path resolved to a location outside the install root."""

    def __init__(self, path: str, root: Path):
        self.path = path
        self.root = root
        super().__init__(f"Path '{path}' escapes the install root '{root}'")


class InstallCancelled(InstallerError):
    """Cooperative cancellation was requested."""

    def __init__(self, message: str = "Installation was cancelled"):
        super().__init__(message)


class StepExecutionError(InstallerError):
    """A delegated optional step finished unsuccessfully."""

    def __init__(self, step_id: str, returncode: int, output: str = ""):
        self.step_id = step_id
        self.returncode = returncode
        self.output = output
        super().__init__(f"Optional step '{step_id}' exited with code {returncode}")


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("manifest 'foo' not found")
        "Error: manifest 'foo' not found"
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Args:
        entity: Name of the entity being validated (e.g., "Model 'sdxl'")
        field: Name of the field that failed validation
        issue: Description of the issue (e.g., "must be a non-empty string")

    Examples:
        >>> format_field_error("Manifest 'comfy'", "id", "is required")
        "Manifest 'comfy' field 'id' is required"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("manifest 'foo' not found", "run 'easyinstaller list'")
        "Error: manifest 'foo' not found. Hint: run 'easyinstaller list'"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "ConfigError",
    "ManifestValidationError",
    "InstallerError",
    "PathEscapeError",
    "InstallCancelled",
    "StepExecutionError",
    "format_error",
    "format_field_error",
    "format_suggestion",
]
