"""Format-string parser producing the node tree consumed by the evaluator."""
from __future__ import annotations

import re
from typing import List, Optional

from .errors import (
    InvalidEscapeError,
    InvalidVariableError,
    MissingStyleError,
    NestingTooDeepError,
    UnexpectedDelimiterError,
    UnterminatedError,
)
from .nodes import Group, Literal, Node, StyleKeyword, StyleToken, StyleVariable, Variable

_ESCAPABLE = frozenset({"$", "[", "]", "(", ")", "\\"})
_STYLE_WORD_RE = re.compile(r"\S+")

# Group nesting is recursive; deeper formats are rejected instead of exhausting the stack.
MAX_NESTING_DEPTH = 64


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def _is_name(text: str) -> bool:
    return bool(text) and all(_is_name_char(char) for char in text)


class _Parser:
    """Single-pass recursive descent over a format string."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.length = len(text)
        self.index = 0

    def parse_display(self, opened_at: Optional[int] = None, depth: int = 0) -> List[Node]:
        """
        Parse a run of literals, variables and groups.

        Parameters:
            opened_at (Optional[int]): Offset of the ``[`` that opened the enclosing group, or `None` at the top level.
            depth (int): Number of groups enclosing this run.

        Returns:
            List[Node]: Parsed nodes. Inside a group the closing ``]`` is left unconsumed for the caller.

        Raises:
            ParseError: On any malformed construct.
        """
        nodes: List[Node] = []
        buffer: List[str] = []

        def flush() -> None:
            if buffer:
                nodes.append(Literal("".join(buffer)))
                buffer.clear()

        while self.index < self.length:
            char = self.text[self.index]
            if char == "\\":
                buffer.append(self._read_escape())
            elif char == "$":
                if self.text.startswith("$$", self.index):
                    buffer.append("$")
                    self.index += 2
                    continue
                flush()
                nodes.append(self._read_variable())
            elif char == "[":
                flush()
                nodes.append(self._read_group(depth + 1))
            elif char == "]":
                if opened_at is None:
                    raise UnexpectedDelimiterError("Unmatched ']'", self.index)
                flush()
                return nodes
            elif char in "()":
                raise UnexpectedDelimiterError(
                    f"Unexpected '{char}' outside of a group style span (escape it as '\\{char}')",
                    self.index,
                )
            else:
                buffer.append(char)
                self.index += 1

        if opened_at is not None:
            raise UnterminatedError(f"Group opened at offset {opened_at} is never closed", self.length)
        flush()
        return nodes

    def _read_escape(self) -> str:
        start = self.index
        if start + 1 >= self.length:
            raise InvalidEscapeError("Trailing '\\' at end of format string", start)
        escaped = self.text[start + 1]
        if escaped not in _ESCAPABLE:
            raise InvalidEscapeError(f"Invalid escape sequence '\\{escaped}'", start)
        self.index += 2
        return escaped

    def _read_variable(self) -> Variable:
        start = self.index
        self.index += 1
        if self.index < self.length and self.text[self.index] == "{":
            close = self.text.find("}", self.index)
            name = self.text[self.index + 1 : close] if close != -1 else ""
            if not _is_name(name):
                raise InvalidVariableError("Malformed '${...}' variable reference", start)
            self.index = close + 1
            return Variable(name)
        end = self.index
        while end < self.length and _is_name_char(self.text[end]):
            end += 1
        if end == self.index:
            raise InvalidVariableError("'$' must be followed by a variable name (use '$$' for a literal '$')", start)
        name = self.text[self.index : end]
        self.index = end
        return Variable(name)

    def _read_group(self, depth: int) -> Group:
        start = self.index
        if depth > MAX_NESTING_DEPTH:
            raise NestingTooDeepError(f"Groups nested deeper than {MAX_NESTING_DEPTH} levels", start)
        self.index += 1
        display = self.parse_display(opened_at=start, depth=depth)
        # consume the closing ']'
        self.index += 1
        if self.index >= self.length or self.text[self.index] != "(":
            raise MissingStyleError(
                f"Group opened at offset {start} must be followed by a '(style)' span",
                self.index,
            )
        style = self._read_style()
        return Group(tuple(display), tuple(style))

    def _read_style(self) -> List[StyleToken]:
        start = self.index
        close = self.text.find(")", start + 1)
        if close == -1:
            raise UnterminatedError(f"Style span opened at offset {start} is never closed", self.length)
        content_start = start + 1
        tokens: List[StyleToken] = []
        for match in _STYLE_WORD_RE.finditer(self.text, content_start, close):
            word = match.group(0)
            if not word.startswith("$"):
                tokens.append(StyleKeyword(word))
                continue
            name = word[1:]
            if name.startswith("{") and name.endswith("}"):
                name = name[1:-1]
            if not _is_name(name):
                raise InvalidVariableError(f"Malformed style variable '{word}'", match.start())
            tokens.append(StyleVariable(name))
        self.index = close + 1
        return tokens


def parse(format_string: str) -> List[Node]:
    """
    Parse a format string into an ordered node tree.

    Parameters:
        format_string (str): Raw template text, e.g. ``"via [$symbol$version ]($style)"``.

    Returns:
        List[Node]: Top-level nodes in source order.

    Raises:
        ParseError: If the template is malformed; the exception carries the offending offset.
    """
    return _Parser(format_string).parse_display()
