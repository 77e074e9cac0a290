from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional

from ..errors import ValueShapeError

__all__ = ['is_sequence', 'adapt', 'resolve_nested']


def is_sequence(value: Any) -> bool:
    """Lists and tuples are sequences; strings and mappings are leaves."""
    return isinstance(value, (list, tuple))


def adapt(raw: Any, leaf: Callable[[Any], Any], depth: Optional[int] = None) -> Any:
    """Apply ``leaf`` to a stored value, preserving its multiple/clone nesting.

    Without ``depth`` the shape of ``raw`` decides: a sequence of sequences is
    mapped two levels deep (clone and multiple), a flat sequence one level
    (clone xor multiple), anything else is a single value.

    With ``depth`` (the number of wrapping flags set on the field) exactly that
    many levels are mapped and a stored value of a different shape raises
    :class:`ValueShapeError`. ``None`` is returned as is at any level.
    """
    if depth is None:
        if is_sequence(raw):
            return [
                [leaf(v) for v in item] if is_sequence(item) else leaf(item)
                for item in raw
            ]
        return leaf(raw)
    return _adapt_declared(raw, leaf, depth, '')


def _adapt_declared(raw: Any, leaf: Callable[[Any], Any], depth: int, path: str) -> Any:
    if depth <= 0:
        return leaf(raw)
    if raw is None:
        return None
    if not is_sequence(raw):
        raise ValueShapeError(depth, path)
    return [_adapt_declared(v, leaf, depth - 1, f"{path}[{i}]") for i, v in enumerate(raw)]


async def resolve_nested(value: Any) -> Any:
    """Await every pending leaf in a (possibly nested) list, keeping its shape."""
    if inspect.isawaitable(value):
        return await value
    if isinstance(value, list):
        return list(await asyncio.gather(*(resolve_nested(v) for v in value)))
    return value
