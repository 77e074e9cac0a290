from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from strawberry.dataloader import DataLoader

__all__ = [
    'ReferenceKind',
    'DeferredReferenceBridge',
    'get_loader',
    'create_loaders',
]

_logger = logging.getLogger("metaboxql")

BatchLoadFn = Callable[[List[Any]], Awaitable[Sequence[Any]]]


class ReferenceKind(str, Enum):
    USER = 'user'
    POST = 'post'
    TERM = 'term'


def get_loader(info_or_ctx: Any, kind: ReferenceKind) -> Any:
    """Find the batched loader for ``kind`` in the request context.

    Accepts a Strawberry ``Info`` or the context itself. The context either
    exposes ``get_loader(kind)`` or a ``loaders`` mapping keyed by kind name.

    Raises:
        LookupError: when the context provides no loader for ``kind``.
    """
    ctx = getattr(info_or_ctx, 'context', info_or_ctx)
    getter = getattr(ctx, 'get_loader', None)
    if callable(getter):
        return getter(kind.value)
    if isinstance(ctx, Mapping):
        loaders = ctx.get('loaders')
    else:
        loaders = getattr(ctx, 'loaders', None)
    if not loaders or kind.value not in loaders:
        raise LookupError(f"No '{kind.value}' loader in the request context")
    return loaders[kind.value]


def create_loaders(
    *,
    users: Optional[BatchLoadFn] = None,
    posts: Optional[BatchLoadFn] = None,
    terms: Optional[BatchLoadFn] = None,
) -> Dict[str, DataLoader]:
    """Wrap host batch functions into per-request ``DataLoader`` instances.

    Each batch function receives the list of keys collected during one
    execution pass and returns one result per key (``None`` for a miss).
    """
    loaders: Dict[str, DataLoader] = {}
    for kind, fn in ((ReferenceKind.USER, users), (ReferenceKind.POST, posts), (ReferenceKind.TERM, terms)):
        if fn is not None:
            loaders[kind.value] = DataLoader(load_fn=fn)
    return loaders


class DeferredReferenceBridge:
    """Turns a stored reference into a pending load on a batched loader.

    :meth:`defer` calls ``loader.load`` right away, so every reference seen
    during one resolution pass lands in the same batch; the returned awaitable
    settles to the loaded node, or ``None`` for a miss or a failed lookup.
    """

    def __init__(self, kind: ReferenceKind):
        self.kind = kind

    def key_for(self, raw: Any) -> Any:
        if raw is None or raw == '' or raw is False:
            return None
        if self.kind is ReferenceKind.TERM:
            if isinstance(raw, Mapping):
                raw = raw.get('term_id')
            else:
                raw = getattr(raw, 'term_id', raw)
            if raw is None:
                return None
        if isinstance(raw, str) and raw.isdigit():
            return int(raw)
        if isinstance(raw, bool) or not isinstance(raw, (int, str)):
            _logger.warning("ignoring malformed %s reference %r", self.kind.value, raw)
            return None
        return raw

    def defer(self, loader: Any, raw: Any) -> Optional[Awaitable[Any]]:
        key = self.key_for(raw)
        if key is None:
            return None
        return self._settle(loader.load(key), key)

    async def _settle(self, pending: Awaitable[Any], key: Any) -> Any:
        try:
            return await pending
        except Exception as exc:
            _logger.warning("%s loader failed for %r: %s", self.kind.value, key, exc)
            return None
