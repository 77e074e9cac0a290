from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Tuple, Union

from .catalog import USER_TYPE_NAME, EntityCatalog
from .core.fields import FieldDefinition, MetaBox
from .core.validation import validate_definitions
from .mutations import MutationInputRegistrar
from .registry import FieldConfig, SchemaRegistry
from .resolvers import DEFAULT_IMAGE_SIZE, ResolverFactory
from .storage import MetaStore
from .types import TypeResolver

__all__ = ['MetaBoxSchemaBuilder']

_logger = logging.getLogger("metaboxql")

MetaBoxLike = Union[MetaBox, Mapping[str, Any]]


class MetaBoxSchemaBuilder:
    """One schema-build pass: registers meta box fields on the entity types they target.

    The entity object types themselves (``Post``, ``User``, ...) belong to the
    host and must already be registered on ``registry``.

    Example:
        registry = SchemaRegistry()
        registry.register_object_type('Post', {...})
        builder = MetaBoxSchemaBuilder(registry, catalog, store)
        builder.build([{'id': 'details', 'post_types': ['post'], 'fields': [...]}])
        schema = registry.to_strawberry()
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        catalog: EntityCatalog,
        store: MetaStore,
        *,
        default_image_size: str = DEFAULT_IMAGE_SIZE,
    ):
        self.registry = registry
        self.catalog = catalog
        self.store = store
        self.resolvers = ResolverFactory(store, default_image_size=default_image_size)
        self.types = TypeResolver(registry, catalog, self.resolvers)
        self.mutations = MutationInputRegistrar(registry, store)

    def build(self, meta_boxes: Iterable[MetaBoxLike]) -> List[str]:
        """Validate and register every meta box; returns the registered ``Type.field`` paths."""
        boxes = [b if isinstance(b, MetaBox) else MetaBox.from_dict(b) for b in meta_boxes]
        validate_definitions(f for box in boxes for f in box.fields)
        registered: List[str] = []
        for box in boxes:
            registered.extend(self.register_meta_box(box))
        return registered

    def target_types(self, box: MetaBox) -> List[Tuple[str, str]]:
        """``(GraphQL type name, meta object type)`` pairs a meta box attaches to."""
        if box.object_type == 'user':
            return [(USER_TYPE_NAME, 'user')]
        if box.object_type == 'term':
            names, lookup = box.taxonomies, self.catalog.taxonomy_type_name
        else:
            names, lookup = box.post_types, self.catalog.content_type_name
        targets: List[Tuple[str, str]] = []
        for name in names:
            type_name = lookup(name)
            if type_name is None:
                _logger.warning("meta box %s: %s is not in the schema", box.id, name)
                continue
            targets.append((type_name, box.object_type))
        return targets

    def register_meta_box(self, box: MetaBoxLike) -> List[str]:
        if not isinstance(box, MetaBox):
            box = MetaBox.from_dict(box)
        validate_definitions(box.fields)
        targets = self.target_types(box)
        registered: List[str] = []
        if not targets:
            return registered
        for field in box.fields:
            config = self.field_config(field)
            if config is None:
                continue
            for type_name, object_type in targets:
                registered.append(self.registry.register_field(type_name, field.graphql_name, config).unwrap())
                self.mutations.register_mutation_input(type_name, config.type, field, object_type=object_type)
        return registered

    def field_config(self, field: FieldDefinition) -> Union[FieldConfig, None]:
        """Type, resolver and arguments for a top-level field, ``None`` when excluded."""
        if not field.graphql_name:
            return None
        ref = self.types.resolve_field(field)
        if ref is None:
            return None
        return FieldConfig(
            ref,
            field.name,
            resolver=self.resolvers.make_resolver(field),
            args=self.types.field_arguments(ref),
        )
