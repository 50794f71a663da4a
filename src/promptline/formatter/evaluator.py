"""Tree walker that turns parsed nodes plus resolvers into styled segments."""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple, Union

from rich.style import Style

from ..segment import Segment
from .errors import EvalError, StyleError
from .nodes import Group, Literal, Node, StyleKeyword, StyleToken, Variable
from .styles import parse_style

VariableValue = Union[str, Sequence[Segment]]
MetaResolver = Callable[[str], Optional[str]]
StyleResolver = Callable[[str], Optional[str]]
ValueResolver = Callable[[str], Optional[VariableValue]]
StyleParser = Callable[[str], Style]

_Evaluated = Tuple[List[Segment], bool]


def _no_value(_name: str) -> None:
    return None


def _call_resolver(resolver: Callable[[str], object], name: str, kind: str) -> object:
    """Invoke a caller-supplied resolver, converting any failure into `EvalError`."""

    try:
        return resolver(name)
    except EvalError:
        raise
    except Exception as exc:
        raise EvalError(f"Failed to resolve {kind} variable '{name}': {exc}", variable=name) from exc


def _value_segments(value: object) -> List[Segment]:
    if isinstance(value, str):
        return [Segment(value)]
    if isinstance(value, Sequence) and all(isinstance(item, Segment) for item in value):
        return list(value)
    return [Segment(str(value))]


class _Evaluation:
    """Holds the resolvers for a single evaluation pass."""

    def __init__(
        self,
        meta_fn: MetaResolver,
        style_fn: StyleResolver,
        value_fn: ValueResolver,
        style_parser: StyleParser,
    ) -> None:
        self.meta_fn = meta_fn
        self.style_fn = style_fn
        self.value_fn = value_fn
        self.style_parser = style_parser

    def node(self, node: Node) -> _Evaluated:
        """
        Evaluate one node.

        Returns:
            tuple[List[Segment], bool]: The node's segments and whether it counts as a resolved
            reference for the elision decision of the enclosing group. Literals never count;
            variables count when they resolved; nested groups count when they rendered anything.
        """
        if isinstance(node, Literal):
            return [Segment(node.text)], False
        if isinstance(node, Variable):
            return self.variable(node.name)
        return self.group(node)

    def variable(self, name: str) -> _Evaluated:
        meta = _call_resolver(self.meta_fn, name, "meta")
        if meta is not None:
            return [Segment(str(meta))], True
        value = _call_resolver(self.value_fn, name, "value")
        if value is None:
            return [], False
        return _value_segments(value), True

    def group(self, group: Group) -> _Evaluated:
        buffered: List[Segment] = []
        has_variable = False
        resolved = False
        for child in group.display:
            segments, child_resolved = self.node(child)
            if isinstance(child, Variable):
                has_variable = True
            resolved = resolved or child_resolved
            buffered.extend(segments)

        if has_variable and not resolved:
            return [], False

        style = self.style(group.style)
        if style is not None:
            buffered = [
                segment if segment.style is not None else segment.with_style(style)
                for segment in buffered
            ]
        return buffered, bool(buffered)

    def style(self, tokens: Sequence[StyleToken]) -> Optional[Style]:
        parts: List[str] = []
        for token in tokens:
            if isinstance(token, StyleKeyword):
                parts.append(token.text)
                continue
            resolved = _call_resolver(self.style_fn, token.name, "style")
            if resolved:
                parts.append(str(resolved))
        if not parts:
            return None
        spec = " ".join(parts)
        try:
            return self.style_parser(spec)
        except StyleError as exc:
            raise EvalError(str(exc)) from exc


def evaluate(
    nodes: Sequence[Node],
    meta_fn: Optional[MetaResolver] = None,
    style_fn: Optional[StyleResolver] = None,
    value_fn: Optional[ValueResolver] = None,
    *,
    style_parser: StyleParser = parse_style,
) -> List[Segment]:
    """
    Walk a parsed node tree and produce the ordered segment list.

    Variables consult ``meta_fn`` first and fall back to ``value_fn``; style variables inside a
    group's style span go to ``style_fn``. A group whose direct variable references all resolved to
    `None` (and in which no nested group rendered anything) is dropped together with its style.
    Segments of kept groups that carry no style of their own take the group's style.

    Parameters:
        nodes (Sequence[Node]): Output of `parse`.
        meta_fn (Optional[MetaResolver]): Plain substitutions such as symbols.
        style_fn (Optional[StyleResolver]): Maps style variable names to style strings.
        value_fn (Optional[ValueResolver]): Maps content variable names to text or to a sequence of segments.
        style_parser (StyleParser): Turns the joined style string of a group into a concrete style.

    Returns:
        List[Segment]: Segments in source order.

    Raises:
        EvalError: If any resolver raises or a group's style cannot be parsed.
    """
    evaluation = _Evaluation(
        meta_fn or _no_value,
        style_fn or _no_value,
        value_fn or _no_value,
        style_parser,
    )
    segments: List[Segment] = []
    for node in nodes:
        node_segments, _ = evaluation.node(node)
        segments.extend(node_segments)
    return segments
