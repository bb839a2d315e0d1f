from __future__ import annotations

import re
import typing

__all__ = ["JSONPath", "PathLike"]

Key = typing.Union[str, int]
Component = typing.Any
PathLike = typing.Union[str, typing.Sequence[Component], "JSONPath"]

_ROOT_EXPRESSIONS = ("", "$")


def _match_component(component: Component, key: Key) -> bool:
    if component is True or component == "*":
        return True
    if isinstance(component, str):
        if isinstance(key, int):
            return component.isdigit() and int(component) == key
        return component == key
    if isinstance(component, int) and not isinstance(component, bool):
        return isinstance(key, int) and component == key
    if isinstance(component, re.Pattern):
        return component.search(str(key)) is not None
    if callable(component):
        return bool(component(key))
    return False


def _match(components: tuple[Component, ...], keys: tuple[Key, ...]) -> bool:
    if not components:
        return not keys
    head, rest = components[0], components[1:]
    if head is Ellipsis:
        # Recursive descent: consume zero or more keys.
        return any(_match(rest, keys[i:]) for i in range(len(keys) + 1))
    if not keys:
        return False
    return _match_component(head, keys[0]) and _match(rest, keys[1:])


class JSONPath:
    """A selector for positions inside a JSON document.

    A dotted string is split on ``.``; ``*`` matches any key or index, an
    empty segment (from ``..``) descends recursively and a digit-only segment
    also matches that array index.  ``""`` and ``"$"`` select the root.

    A structured selector is a sequence of components: ``str`` keys, ``int``
    indices, ``True`` or ``"*"`` for any, a compiled ``re.Pattern`` searched
    against the key, a ``key -> bool`` callable, or ``...`` for recursive
    descent.

    >>> JSONPath("rows.*.doc").matches(("rows", 4, "doc"))
    True
    >>> JSONPath(["rows", True, re.compile("^d")]).matches(("rows", 0, "doc"))
    True
    """

    __slots__ = ("components", "expression")

    def __init__(self, path: PathLike) -> None:
        if isinstance(path, JSONPath):
            self.components: tuple[Component, ...] = path.components
            self.expression: str = path.expression
            return
        if isinstance(path, str):
            self.components = self._parse(path)
            self.expression = path
            return
        if isinstance(path, (bytes, bytearray)):
            raise TypeError("JSON path must be str or a sequence, not bytes")
        components = tuple(path)
        for component in components:
            if not (
                component is Ellipsis
                or isinstance(component, (str, int, re.Pattern))
                or callable(component)
            ):
                raise TypeError(f"Unsupported JSON path component: {component!r}")
        self.components = components
        self.expression = ".".join(self._render(c) for c in components)

    @staticmethod
    def _parse(expression: str) -> tuple[Component, ...]:
        if expression in _ROOT_EXPRESSIONS:
            return ()
        if expression.startswith("$."):
            expression = expression[2:]
        components: list[Component] = []
        for segment in expression.split("."):
            if segment == "":
                if not components or components[-1] is not Ellipsis:
                    components.append(Ellipsis)
            elif segment == "*":
                components.append(True)
            else:
                components.append(segment)
        return tuple(components)

    @staticmethod
    def _render(component: Component) -> str:
        if component is Ellipsis:
            return ""
        if component is True:
            return "*"
        if isinstance(component, re.Pattern):
            return f"/{component.pattern}/"
        if isinstance(component, (str, int)):
            return str(component)
        return getattr(component, "__name__", repr(component))

    @property
    def is_root(self) -> bool:
        return not self.components

    def matches(self, keys: typing.Sequence[Key]) -> bool:
        """Return ``True`` if the concrete key path *keys* is selected."""
        return _match(self.components, tuple(keys))

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"JSONPath({self.expression!r})"

    def __eq__(self, other: typing.Any) -> bool:
        return isinstance(other, JSONPath) and self.components == other.components

    def __hash__(self) -> int:
        return hash(self.components)
