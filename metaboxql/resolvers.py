from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .core.coercion import coercer_for
from .core.fields import UNSUPPORTED_KINDS, FieldDefinition, FieldKind
from .core.nesting import adapt, resolve_nested
from .loaders import DeferredReferenceBridge, ReferenceKind, get_loader
from .nodes import entity_id_of, object_type_of
from .storage import MetaStore, select_image_size

__all__ = [
    'StorageSource',
    'PayloadSource',
    'ResolverFactory',
    'DEFAULT_IMAGE_SIZE',
]

_logger = logging.getLogger("metaboxql")

DEFAULT_IMAGE_SIZE = 'thumbnail'

Resolver = Callable[..., Any]


class StorageSource:
    """Reads a field's raw value for an entity from the meta store."""

    def __init__(self, store: MetaStore, meta_args: Optional[Mapping[str, Any]] = None):
        self.store = store
        self.meta_args = dict(meta_args or {})

    def fetch(self, entity: Any, field: FieldDefinition, options: Optional[Mapping[str, Any]] = None) -> Any:
        opts: Dict[str, Any] = {'object_type': object_type_of(entity)}
        opts.update(self.meta_args)
        opts.update(options or {})
        return self.store.get(field.id, entity_id_of(entity), opts)


class PayloadSource:
    """Reads a child field's raw value out of its parent group's payload."""

    def fetch(self, entity: Any, field: FieldDefinition, options: Optional[Mapping[str, Any]] = None) -> Any:
        if not isinstance(entity, Mapping):
            return None
        return select_image_size(entity.get(field.id), (options or {}).get('size'))


async def _fetch(source: Any, entity: Any, field: FieldDefinition, options: Optional[Mapping[str, Any]] = None) -> Any:
    raw = source.fetch(entity, field, options)
    if inspect.isawaitable(raw):
        raw = await raw
    return raw


async def _null_resolver(root: Any, info: Any, **_args: Any) -> None:
    return None


_REFERENCE_LOADERS: Dict[FieldKind, ReferenceKind] = {
    FieldKind.USER: ReferenceKind.USER,
    FieldKind.POST: ReferenceKind.POST,
    FieldKind.TAXONOMY: ReferenceKind.TERM,
    FieldKind.TAXONOMY_ADVANCED: ReferenceKind.TERM,
}


class ResolverFactory:
    """Builds the resolver attached to a field for its type tag.

    Resolvers fetch the raw value from their source, shape it with the
    nesting adapter using the field's declared depth and turn each leaf into
    a schema-safe value (coercion) or a pending load (references).
    """

    def __init__(self, store: Optional[MetaStore] = None, *, default_image_size: str = DEFAULT_IMAGE_SIZE):
        self.store = store
        self.default_image_size = default_image_size
        self._bridges: Dict[ReferenceKind, DeferredReferenceBridge] = {
            kind: DeferredReferenceBridge(kind) for kind in ReferenceKind
        }
        self._builders: Dict[FieldKind, Callable[[FieldDefinition, Any], Resolver]] = {
            FieldKind.SINGLE_IMAGE: self._image_resolver,
        }
        for kind in _REFERENCE_LOADERS:
            self._builders[kind] = self._reference_resolver

    def make_resolver(self, field: FieldDefinition, source: Any = None) -> Resolver:
        kind = field.kind
        if kind is None or kind in UNSUPPORTED_KINDS:
            return _null_resolver
        if source is None:
            if self.store is None:
                raise ValueError("ResolverFactory needs a meta store or an explicit source")
            source = StorageSource(self.store)
        builder = self._builders.get(kind, self._coerced_resolver)
        return builder(field, source)

    def _coerced_resolver(self, field: FieldDefinition, source: Any) -> Resolver:
        leaf = coercer_for(field.kind)
        depth = field.wrapping_depth

        async def resolve(root: Any, info: Any, **_args: Any) -> Any:
            raw = await _fetch(source, root, field)
            return adapt(raw, leaf, depth)
        return resolve

    def _image_resolver(self, field: FieldDefinition, source: Any) -> Resolver:
        leaf = coercer_for(FieldKind.SINGLE_IMAGE)
        depth = field.wrapping_depth
        default_size = self.default_image_size

        async def resolve(root: Any, info: Any, size: Any = None, **_args: Any) -> Any:
            size_value = getattr(size, 'value', size) or default_size
            raw = await _fetch(source, root, field, {'size': size_value})
            return adapt(raw, leaf, depth)
        return resolve

    def _reference_resolver(self, field: FieldDefinition, source: Any) -> Resolver:
        bridge = self._bridges[_REFERENCE_LOADERS[field.kind]]
        depth = field.wrapping_depth

        async def resolve(root: Any, info: Any, **_args: Any) -> Any:
            raw = await _fetch(source, root, field)
            if raw is None or raw == '':
                return None
            # shape errors must surface before any key reaches the loader
            keys = adapt(raw, lambda v: v, depth)
            loader = get_loader(info, bridge.kind)
            pending = adapt(keys, lambda v: bridge.defer(loader, v), depth)
            return await resolve_nested(pending)
        return resolve
