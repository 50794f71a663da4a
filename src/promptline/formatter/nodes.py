"""Node types produced by the format-string parser."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple, Union


@dataclass(frozen=True)
class Literal:
    """Verbatim output text."""

    text: str


@dataclass(frozen=True)
class Variable:
    """A ``$name`` reference resolved through the meta or value resolver."""

    name: str


@dataclass(frozen=True)
class StyleKeyword:
    """A literal token inside a style span, such as ``bold`` or ``fg:red``."""

    text: str


@dataclass(frozen=True)
class StyleVariable:
    """A ``$name`` token inside a style span, resolved through the style resolver."""

    name: str


StyleToken = Union[StyleKeyword, StyleVariable]


@dataclass(frozen=True)
class Group:
    """A ``[display](style)`` construct."""

    display: Tuple["Node", ...]
    style: Tuple[StyleToken, ...]


Node = Union[Literal, Variable, Group]


def iter_variables(nodes: Sequence[Node]) -> Iterator[str]:
    """Yield content variable names in source order, descending into groups."""

    for node in nodes:
        if isinstance(node, Variable):
            yield node.name
        elif isinstance(node, Group):
            yield from iter_variables(node.display)


def iter_style_variables(nodes: Sequence[Node]) -> Iterator[str]:
    """Yield style variable names in source order, descending into groups."""

    for node in nodes:
        if not isinstance(node, Group):
            continue
        for token in node.style:
            if isinstance(token, StyleVariable):
                yield token.name
        yield from iter_style_variables(node.display)
