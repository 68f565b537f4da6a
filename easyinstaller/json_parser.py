"""Lenient JSON reading for hand-authored manifests.

Manifests are written by people, so they may carry ``//`` line comments,
``/* ... */`` block comments and trailing commas. The preprocessor below
turns that text into strict JSON while keeping every character at its
original line/column, so decoder errors still point at the right place.
"""

from typing import Final


_NORMAL: Final[int] = 0
_IN_STRING: Final[int] = 1
_ESCAPE: Final[int] = 2
_SLASH: Final[int] = 3
_LINE_COMMENT: Final[int] = 4
_BLOCK_COMMENT: Final[int] = 5
_BLOCK_STAR: Final[int] = 6


def _blank(char: str) -> str:
    return char if char in "\r\n" else " "


class JsonPreprocessor:
    """State machine converting JSON-with-comments into strict JSON.

    Example:
        >>> import json
        >>> json.loads(JsonPreprocessor().preprocess('{"a": 1, /* note */}'))
        {'a': 1}
    """

    def __init__(self) -> None:
        self.state: int = _NORMAL

    def preprocess(self, text: str) -> str:
        """Return ``text`` with comments and trailing commas blanked out."""
        result: list[str] = []
        self.state = _NORMAL

        for i, char in enumerate(text):
            if self.state == _IN_STRING:
                if char == "\\":
                    self.state = _ESCAPE
                elif char == '"':
                    self.state = _NORMAL
                result.append(char)
            elif self.state == _ESCAPE:
                result.append(char)
                self.state = _IN_STRING
            elif self.state == _SLASH:
                self._after_slash(char, result)
            elif self.state == _LINE_COMMENT:
                if char == "\n":
                    self.state = _NORMAL
                result.append(_blank(char))
            elif self.state == _BLOCK_COMMENT:
                if char == "*":
                    self.state = _BLOCK_STAR
                result.append(_blank(char))
            elif self.state == _BLOCK_STAR:
                if char == "/":
                    self.state = _NORMAL
                elif char != "*":
                    self.state = _BLOCK_COMMENT
                result.append(_blank(char))
            else:
                self._normal(char, result, text, i)

        return "".join(result)

    def _normal(self, char: str, result: list[str], text: str, i: int) -> None:
        if char == '"':
            self.state = _IN_STRING
            result.append(char)
        elif char == "/":
            self.state = _SLASH
            result.append(char)
        elif char == "," and _is_trailing_comma(text, i):
            result.append(" ")
        else:
            result.append(char)

    def _after_slash(self, char: str, result: list[str]) -> None:
        if char == "/":
            result[-1] = " "
            result.append(" ")
            self.state = _LINE_COMMENT
        elif char == "*":
            result[-1] = " "
            result.append(" ")
            self.state = _BLOCK_COMMENT
        else:
            # A lone slash is left for the decoder to reject.
            result.append(char)
            self.state = _NORMAL


def _skip_insignificant(text: str, j: int) -> int:
    """Advance past whitespace and comments starting at ``j``."""
    n = len(text)
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            end = text.find("\n", j)
            j = n if end == -1 else end
        elif text.startswith("/*", j):
            end = text.find("*/", j + 2)
            j = n if end == -1 else end + 2
        else:
            break
    return j


def _is_trailing_comma(text: str, i: int) -> bool:
    j = _skip_insignificant(text, i + 1)
    return j < len(text) and text[j] in "]}"


def preprocess_jsonish(text: str) -> str:
    """Preprocess JSON-ish text into strict JSON.

    Examples:
        >>> import json
        >>> json.loads(preprocess_jsonish('{"a": 1,}'))
        {'a': 1}

        >>> json.loads(preprocess_jsonish('{"url": "https://example.com//x"}'))
        {'url': 'https://example.com//x'}
    """
    return JsonPreprocessor().preprocess(text)


__all__ = ["preprocess_jsonish", "JsonPreprocessor"]
