"""Builder API that modules use to render their format strings."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..segment import Segment
from .errors import EvalError, ParseError
from .evaluator import MetaResolver, StyleParser, StyleResolver, VariableValue, evaluate
from .nodes import Node, iter_style_variables, iter_variables
from .parser import parse
from .styles import parse_style

AsyncValueResolver = Callable[[str], Awaitable[Optional[VariableValue]]]
SyncValueResolver = Callable[[str], Optional[VariableValue]]


def _unique(names: List[str]) -> List[str]:
    return list(dict.fromkeys(names))


class StringFormatter:
    """
    Parsed format string plus the resolvers registered against it.

    Typical use::

        segments = (
            StringFormatter(config.format, default_format=DEFAULT_FORMAT)
            .map_meta(lambda name: config.symbol if name == "symbol" else None)
            .map_style(lambda name: config.style if name == "style" else None)
            .map(lambda name: version if name == "version" else None)
            .render()
        )

    Value resolvers run eagerly when registered and their results are stored per variable name, so
    `render` is a pure walk over the tree and can be repeated with identical results.
    """

    def __init__(self, format_string: str, default_format: Optional[str] = None) -> None:
        """
        Parse ``format_string``, falling back to ``default_format`` when it is malformed.

        Parameters:
            format_string (str): The user-supplied template.
            default_format (Optional[str]): Template parsed instead when ``format_string`` fails.

        Raises:
            ParseError: If ``format_string`` fails and there is no default, or the default fails as well.
        """
        self.format_string = format_string
        self.fallback_error: Optional[ParseError] = None
        try:
            self.nodes: List[Node] = parse(format_string)
        except ParseError as exc:
            if default_format is None:
                raise
            self.fallback_error = exc
            self.format_string = default_format
            try:
                self.nodes = parse(default_format)
            except ParseError as default_exc:
                raise default_exc from exc

        self._variables = _unique(list(iter_variables(self.nodes)))
        self._style_variables = _unique(list(iter_style_variables(self.nodes)))
        self._meta: Dict[str, str] = {}
        self._values: Dict[str, VariableValue] = {}
        self._failures: Dict[str, BaseException] = {}
        self._meta_failures: Dict[str, BaseException] = {}
        self._style_resolvers: List[StyleResolver] = []
        self._style_parser: StyleParser = parse_style

    def get_variables(self) -> List[str]:
        """Return content variable names referenced by the format, in first-use order."""

        return list(self._variables)

    def get_style_variables(self) -> List[str]:
        """Return style variable names referenced by the format, in first-use order."""

        return list(self._style_variables)

    def _pending(self) -> List[str]:
        return [
            name
            for name in self._variables
            if name not in self._meta
            and name not in self._meta_failures
            and name not in self._values
            and name not in self._failures
        ]

    def map_meta(self, mapper: MetaResolver) -> "StringFormatter":
        """
        Register a meta resolver; names it answers are substituted verbatim.

        Meta answers take priority over value answers whatever the registration order, so every
        variable no earlier meta resolver answered is offered to ``mapper``, including names a value
        resolver already handled. Raising records a failure that aborts `render`.
        """
        for name in self._variables:
            if name in self._meta or name in self._meta_failures:
                continue
            try:
                value = mapper(name)
            except Exception as exc:
                self._meta_failures[name] = exc
                continue
            if value is not None:
                self._meta[name] = value
        return self

    def map_style(self, mapper: StyleResolver) -> "StringFormatter":
        """Register a style resolver consulted for ``$name`` tokens inside style spans."""

        self._style_resolvers.append(mapper)
        return self

    def with_style_parser(self, parser: StyleParser) -> "StringFormatter":
        self._style_parser = parser
        return self

    def map(self, mapper: SyncValueResolver) -> "StringFormatter":
        """
        Register a synchronous value resolver.

        The resolver is called once for every variable no earlier resolver answered. Returning `None`
        leaves the variable open for later resolvers; raising records a failure that aborts `render`.
        """
        for name in self._pending():
            try:
                value = mapper(name)
            except Exception as exc:
                self._failures[name] = exc
                continue
            if value is not None:
                self._values[name] = value
        return self

    async def map_async(self, mapper: AsyncValueResolver) -> "StringFormatter":
        """
        Register an asynchronous value resolver and await every lookup it is responsible for.

        All still-unresolved variables are looked up concurrently. Results are stored by name, so
        the completion order of the lookups has no influence on the rendered output.
        """
        pending = self._pending()
        results: List[Any] = await asyncio.gather(
            *(mapper(name) for name in pending), return_exceptions=True
        )
        for name, result in zip(pending, results):
            if isinstance(result, BaseException):
                if isinstance(result, (KeyboardInterrupt, SystemExit)):
                    raise result
                self._failures[name] = result
            elif result is not None:
                self._values[name] = result
        return self

    def _lookup_meta(self, name: str) -> Optional[str]:
        failure = self._meta_failures.get(name)
        if failure is not None:
            raise EvalError(f"Failed to resolve meta variable '{name}': {failure}", variable=name) from failure
        return self._meta.get(name)

    def _lookup_style(self, name: str) -> Optional[str]:
        for resolver in self._style_resolvers:
            style = resolver(name)
            if style is not None:
                return style
        return None

    def _lookup_value(self, name: str) -> Optional[VariableValue]:
        failure = self._failures.get(name)
        if failure is not None:
            raise EvalError(f"Failed to resolve variable '{name}': {failure}", variable=name) from failure
        return self._values.get(name)

    def render(self) -> List[Segment]:
        """
        Evaluate the parsed format against the stored resolver results.

        Returns:
            List[Segment]: Ordered segments; elided groups contribute nothing.

        Raises:
            EvalError: If a resolver failed for a referenced variable or a style is invalid.
        """
        return evaluate(
            self.nodes,
            self._lookup_meta,
            self._lookup_style,
            self._lookup_value,
            style_parser=self._style_parser,
        )
