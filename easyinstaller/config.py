"""JSON-ish document loading shared by manifests and other inputs."""

import json
from pathlib import Path

from easyinstaller.json_parser import preprocess_jsonish


class ConfigError(Exception):
    """Raised when a document cannot be read or parsed.

    Syntax errors carry the line number, column position and a caret
    indicator pointing at the offending character.
    """
    pass


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    """Format a JSON syntax error with line, caret, and context.

    Args:
        original_text: The original text before preprocessing
        error: The JSONDecodeError raised by json.loads()

    Returns:
        A formatted error message string
    """
    lines = original_text.split("\n")
    line_num = error.lineno
    col_num = error.colno

    msg_parts = [f"Syntax error at line {line_num}, col {col_num}: {error.msg}"]

    if 1 <= line_num <= len(lines):
        msg_parts.append(lines[line_num - 1])
        msg_parts.append(" " * (col_num - 1) + "^")

    return "\n".join(msg_parts)


def read_text(path: Path) -> str:
    """Read a UTF-8 document, translating OS errors into ConfigError."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"File not found: {path}")
    except PermissionError:
        raise ConfigError(f"Permission denied reading file: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"File is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading file {path}: {e}")


def load_document(path_or_text: Path | str) -> dict:
    """Load and parse a JSON-ish object.

    Accepts either a file path or raw text. Trailing commas and ``//`` or
    ``/* */`` comments are tolerated.

    Args:
        path_or_text: Either a Path to a JSON file, or a string containing
            JSON or JSON-ish text

    Returns:
        The parsed object

    Raises:
        ConfigError: If the file cannot be read, contains syntax errors, or
            does not hold a JSON object.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        original_text = read_text(path_or_text)
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Document must be a JSON object, got {type(result).__name__}")

    return result


__all__ = [
    "ConfigError",
    "read_text",
    "load_document",
]
