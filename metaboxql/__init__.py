"""metaboxql public API and lightweight lazy exports.

Maps Meta Box field definitions onto a Strawberry GraphQL schema.

Exposes:
- SchemaRegistry, TypeRef, FieldConfig, ArgumentConfig (registry)
- MetaBoxSchemaBuilder (build pass)
- FieldDefinition, FieldKind, MetaBox (field model)
- EntityCatalog, ContentType, Taxonomy (entity-type discovery)
- InMemoryMetaStore, SqlMetaStore (storage accessors)
- create_loaders, PostNode, UserNode, TermNode
"""
from __future__ import annotations

import importlib as _importlib

_EXPORTS = {
    'SchemaRegistry': 'registry',
    'TypeRef': 'registry',
    'FieldConfig': 'registry',
    'ArgumentConfig': 'registry',
    'PostMutationEvent': 'registry',
    'MetaBoxSchemaBuilder': 'builder',
    'FieldDefinition': 'core.fields',
    'FieldKind': 'core.fields',
    'MetaBox': 'core.fields',
    'EntityCatalog': 'catalog',
    'ContentType': 'catalog',
    'Taxonomy': 'catalog',
    'InMemoryMetaStore': 'storage',
    'SqlMetaStore': 'storage',
    'create_loaders': 'loaders',
    'PostNode': 'nodes',
    'UserNode': 'nodes',
    'TermNode': 'nodes',
    'MetaboxQLError': 'errors',
    'ConfigurationError': 'errors',
    'RegistrationConflictError': 'errors',
    'ValueShapeError': 'errors',
}


def __getattr__(name: str):  # PEP 562 lazy exports
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(_importlib.import_module(f"{__name__}.{module}"), name)


__all__ = sorted(_EXPORTS)
