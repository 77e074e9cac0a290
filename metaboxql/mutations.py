from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from .core.fields import REFERENCE_KINDS, FieldDefinition
from .core.naming import create_input_name, update_input_name
from .registry import SCALARS, FieldConfig, PostMutationEvent, SchemaRegistry, TypeRef
from .storage import MetaStore

__all__ = ['MutationInputRegistrar']

_logger = logging.getLogger("metaboxql")


class MutationInputRegistrar:
    """Exposes opted-in fields on an entity's create/update inputs and writes them back.

    Only fields declaring ``graphql_mutate: True`` take part. Scalar fields
    keep their output type; reference fields accept ids. Composite values
    (groups, images, key/value lists) are not accepted as input.
    """

    def __init__(self, registry: SchemaRegistry, store: MetaStore):
        self.registry = registry
        self.store = store

    def input_type_for(self, field: FieldDefinition, field_type: TypeRef) -> Optional[TypeRef]:
        if field.kind in REFERENCE_KINDS:
            return TypeRef('ID', field.wrapping_depth)
        if field_type.name in SCALARS:
            return field_type
        return None

    def register_mutation_input(self, entity_singular_name: str, field_type: TypeRef, field: FieldDefinition, *, object_type: str = 'post') -> None:
        if field.graphql_mutate is not True:
            return
        input_type = self.input_type_for(field, field_type)
        if input_type is None:
            _logger.warning(
                "field %s of type %s cannot be used as mutation input; skipped", field.id, field.type
            )
            return
        config = FieldConfig(input_type, description=field.name)
        for input_name in (create_input_name(entity_singular_name), update_input_name(entity_singular_name)):
            self.registry.extend_input_fields(input_name, field.graphql_name, config).unwrap()
        self.registry.on_post_mutation(self._write_back(entity_singular_name, field, object_type))

    def _write_back(self, type_name: str, field: FieldDefinition, object_type: str) -> Callable[[PostMutationEvent], Any]:
        async def write_back(event: PostMutationEvent) -> None:
            if event.type_name != type_name or field.graphql_name not in event.input:
                return
            res = self.store.set(
                field.id, event.entity_id, event.input[field.graphql_name], {'object_type': object_type}
            )
            if inspect.isawaitable(res):
                await res
        return write_back
