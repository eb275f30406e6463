"""Engine-independent query transform protocol.

Rendering is a lookup keyed by ``(engine kind, node type)``. Engines register
only the node types they render differently; everything else falls back to
the ``"default"`` entry.

Default rules:

- sequence -> non-empty fragments joined by a space (implicit AND)
- Literal  -> verbatim, double-quoted when it contains whitespace
- And      -> nothing
- Or       -> ``l or r``; if one side renders to nothing, the other side alone
- Not      -> ``not e``; nothing if ``e`` renders to nothing
- Near     -> rendered as Or
- Group    -> ``(...)``
- KeyValue -> ``key:value``

A renderer returns None for anything its engine cannot express. The fragment
is then dropped, and the rest of the query still runs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Optional, TypeVar

from FedSearch.core.query import And, DateSpec, Expression, Group, KeyValue, Literal, Near, Not, Or

DEFAULT = "default"

Renderer = Callable[[str, Expression], Optional[str]]
_R = TypeVar("_R", bound=Renderer)

_RENDERERS: dict[tuple[str, type], Renderer] = {}


def renders(kinds: str | tuple[str, ...], *node_types: type) -> Callable[[_R], _R]:
    """Register a renderer for one or more engine kinds and the given node types."""
    if isinstance(kinds, str):
        kinds = (kinds,)

    def decorator(func: _R) -> _R:
        for kind in kinds:
            for node_type in node_types:
                _RENDERERS[(kind, node_type)] = func
        return func

    return decorator


def transform(kind: str, query: Iterable[Expression]) -> str:
    """Render a parsed query (an implicitly AND-ed sequence) for engine ``kind``."""
    return join_fragments(transform_expression(kind, node) for node in query)


def transform_expression(kind: str, node: Expression) -> Optional[str]:
    """Render one node for engine ``kind``; None means "cannot express"."""
    renderer = _RENDERERS.get((kind, type(node))) or _RENDERERS.get((DEFAULT, type(node)))
    if renderer is None:
        return None
    return renderer(kind, node)


def join_fragments(fragments: Iterable[Optional[str]], sep: str = " ") -> str:
    return sep.join(fragment for fragment in fragments if fragment)


def quote_if_spaced(text: str) -> str:
    if any(char.isspace() for char in text) and not (text.startswith('"') and text.endswith('"')):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def format_date(value: DateSpec) -> str:
    """Render the stated parts of a date as ``YYYY-MM-DD``, ``YYYY-MM``, ``MM-DD``..."""
    parts: list[str] = []
    if value.year is not None:
        parts.append(f"{value.year:04d}")
    if value.month is not None:
        parts.append(f"{value.month:02d}")
    if value.day is not None:
        parts.append(f"{value.day:02d}")
    return "-".join(parts)


def distribute_key(key: str, group: Group) -> Group:
    """Copy ``group`` with every bare literal turned into ``KeyValue(key, literal)``.

    ``to:(alice or bob)`` becomes ``(to:alice or to:bob)``; the original tree
    is left untouched.
    """
    return Group(tuple(_distribute(key, item) for item in group.items))


def _distribute(key: str, node: Expression) -> Expression:
    if isinstance(node, Literal):
        return KeyValue(key, node.text)
    if isinstance(node, Or):
        return Or(_distribute(key, node.left), _distribute(key, node.right))
    if isinstance(node, Near):
        return Or(KeyValue(key, node.left.text), KeyValue(key, node.right.text))
    if isinstance(node, Not):
        return Not(_distribute(key, node.operand))
    if isinstance(node, Group):
        return distribute_key(key, node)
    return node


@renders(DEFAULT, Literal)
def _literal(kind: str, node: Literal) -> Optional[str]:
    return quote_if_spaced(node.text)


@renders(DEFAULT, And)
def _and(kind: str, node: And) -> Optional[str]:
    return None


@renders(DEFAULT, Or)
def _or(kind: str, node: Or) -> Optional[str]:
    left = transform_expression(kind, node.left)
    right = transform_expression(kind, node.right)
    if left and right:
        return f"{left} or {right}"
    return left or right


@renders(DEFAULT, Not)
def _not(kind: str, node: Not) -> Optional[str]:
    inner = transform_expression(kind, node.operand)
    if inner:
        return f"not {inner}"
    return None


@renders(DEFAULT, Near)
def _near(kind: str, node: Near) -> Optional[str]:
    return transform_expression(kind, Or(node.left, node.right))


@renders(DEFAULT, Group)
def _group(kind: str, node: Group) -> Optional[str]:
    inner = transform(kind, node.items)
    return f"({inner})" if inner else None


@renders(DEFAULT, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))
    if isinstance(node.value, DateSpec):
        return f"{node.key}:{format_date(node.value)}"
    return f"{node.key}:{quote_if_spaced(node.value)}"
