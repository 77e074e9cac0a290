"""Type inference for Meta Box fields.

:class:`TypeResolver` maps a field definition to a :class:`TypeRef`; groups
are registered as object types by :class:`GroupRegistrar` and references to
several content types become synthesized unions built by
:class:`UnionBuilder`. The multiple/clone flags wrap the base type in at most
two extra list levels.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .catalog import USER_TYPE_NAME, EntityCatalog
from .core.coercion import scalar_coercer
from .core.fields import (
    BOOLEAN_KINDS,
    NUMBER_KINDS,
    STRING_KINDS,
    STRING_LIST_KINDS,
    UNSUPPORTED_KINDS,
    FieldDefinition,
    FieldKind,
)
from .core.identity import group_global_id
from .core.naming import union_type_name
from .errors import ConfigurationError
from .registry import ArgumentConfig, FieldConfig, SchemaRegistry, TypeRef
from .resolvers import PayloadSource, ResolverFactory

__all__ = [
    'MediaItemSizeEnum',
    'KEY_VALUE_TYPE',
    'SINGLE_IMAGE_TYPE',
    'MEDIA_SIZE_ENUM',
    'TypeResolver',
    'UnionBuilder',
    'GroupRegistrar',
]

_logger = logging.getLogger("metaboxql")

KEY_VALUE_TYPE = 'MBKeyValue'
SINGLE_IMAGE_TYPE = 'MBSingleImage'
MEDIA_SIZE_ENUM = 'MediaItemSizeEnum'


class MediaItemSizeEnum(Enum):
    THUMBNAIL = 'thumbnail'
    MEDIUM = 'medium'
    MEDIUM_LARGE = 'medium_large'
    LARGE = 'large'
    FULL = 'full'


_STATIC_TYPES: Dict[FieldKind, TypeRef] = {
    FieldKind.CHECKBOX_LIST: TypeRef('Boolean', 1),
    FieldKind.KEY_VALUE: TypeRef(KEY_VALUE_TYPE, 1),
    FieldKind.SINGLE_IMAGE: TypeRef(SINGLE_IMAGE_TYPE),
    FieldKind.USER: TypeRef(USER_TYPE_NAME),
}
_STATIC_TYPES.update({k: TypeRef('Boolean') for k in BOOLEAN_KINDS})
_STATIC_TYPES.update({k: TypeRef('String') for k in STRING_KINDS})
_STATIC_TYPES.update({k: TypeRef('String', 1) for k in STRING_LIST_KINDS})
_STATIC_TYPES.update({k: TypeRef('Float') for k in NUMBER_KINDS})

# Image record keys exposed on MBSingleImage: GraphQL name -> (record key, scalar)
_SINGLE_IMAGE_FIELDS: Dict[str, Tuple[str, str]] = {
    'id': ('ID', 'ID'),
    'name': ('name', 'String'),
    'title': ('title', 'String'),
    'alt': ('alt', 'String'),
    'caption': ('caption', 'String'),
    'description': ('description', 'String'),
    'url': ('url', 'String'),
    'fullUrl': ('full_url', 'String'),
    'width': ('width', 'Int'),
    'height': ('height', 'Int'),
    'srcSet': ('srcset', 'String'),
}


def _record_key_resolver(key: str, scalar: str):
    coerce = scalar_coercer(scalar)

    def resolve(root: Any, info: Any) -> Any:
        if not isinstance(root, Mapping):
            return None
        return coerce(root.get(key))
    return resolve


def _group_id_resolver(type_name: str):
    def resolve(root: Any, info: Any) -> str:
        return group_global_id(type_name, root)
    return resolve


class UnionBuilder:
    """Synthesizes a union for ``post`` fields that target several content types."""

    def __init__(self, registry: SchemaRegistry, catalog: EntityCatalog):
        self.registry = registry
        self.catalog = catalog
        self._built: Dict[str, Tuple[str, ...]] = {}

    def member_names(self, field: FieldDefinition) -> List[str]:
        names: List[str] = []
        for post_type in field.post_type:
            name = self.catalog.content_type_name(post_type)
            if name is None:
                _logger.warning("content type %s is not in the schema; skipped from %s", post_type, field.id)
                continue
            if name not in names:
                names.append(name)
        return names

    def build_union(self, field: FieldDefinition) -> Optional[TypeRef]:
        if not field.graphql_name:
            raise ConfigurationError(f"Field '{field.id}' needs a graphql_name to build a union")
        members = self.member_names(field)
        if not members:
            _logger.warning("none of the content types of %s are in the schema", field.id)
            return None
        name = union_type_name(field.graphql_name, members)
        if name in self._built:
            _logger.debug("union %s already registered", name)
        else:
            self.registry.register_union_type(
                name,
                tuple(members),
                self.catalog.resolve_node_type,
                description=f"Union of {', '.join(members)} for {field.graphql_name}",
            ).unwrap()
            self._built[name] = tuple(members)
        return TypeRef(name).wrapped(field.wrapping_depth)


class GroupRegistrar:
    """Registers a ``group`` field as an object type named after its ``graphql_name``."""

    def __init__(self, registry: SchemaRegistry, types: 'TypeResolver', resolvers: ResolverFactory):
        self.registry = registry
        self.types = types
        self.resolvers = resolvers
        self._registered: Dict[str, FieldDefinition] = {}
        self._in_progress: Set[str] = set()
        self._payload = PayloadSource()

    def register_group(self, field: FieldDefinition) -> str:
        name = field.graphql_name
        if not name:
            raise ConfigurationError(f"Group field '{field.id}' needs a graphql_name")
        seen = self._registered.get(name)
        if seen is not None:
            if seen != field:
                raise ConfigurationError(
                    f"Group name '{name}' is used by two different group definitions "
                    f"(fields '{seen.id}' and '{field.id}')"
                )
            _logger.debug("group %s already registered", name)
            return name
        if name in self._in_progress:
            raise ConfigurationError(f"Group '{name}' is nested inside itself")
        self._in_progress.add(name)
        try:
            fields = self._group_fields(name, field)
        finally:
            self._in_progress.discard(name)
        self.registry.register_object_type(name, fields, description=f"{name} Group").unwrap()
        self._registered[name] = field
        return name

    def _group_fields(self, name: str, field: FieldDefinition) -> Dict[str, FieldConfig]:
        fields: Dict[str, FieldConfig] = {
            'id': FieldConfig(TypeRef('ID'), 'Generated ID', resolver=_group_id_resolver(name)),
        }
        for child in field.fields:
            if not child.graphql_name:
                continue
            if child.graphql_name in fields:
                _logger.warning("group %s: child %s clashes with an existing field; skipped", name, child.id)
                continue
            ref = self.types.resolve_field(child)
            if ref is None:
                continue
            fields[child.graphql_name] = FieldConfig(
                ref,
                child.name,
                resolver=self.resolvers.make_resolver(child, source=self._payload),
                args=self.types.field_arguments(ref),
            )
        return fields


class TypeResolver:
    """Maps field definitions to GraphQL type references.

    Args:
        registry: Registry receiving group, union and built-in types.
        catalog: Exposure information for content types and taxonomies.
        resolvers: Factory used for the resolvers of group children.
    """

    def __init__(self, registry: SchemaRegistry, catalog: EntityCatalog, resolvers: ResolverFactory):
        self.registry = registry
        self.catalog = catalog
        self.unions = UnionBuilder(registry, catalog)
        self.groups = GroupRegistrar(registry, self, resolvers)
        self._dynamic = {
            FieldKind.POST: self._post_type,
            FieldKind.TAXONOMY: self._taxonomy_type,
            FieldKind.TAXONOMY_ADVANCED: self._taxonomy_type,
            FieldKind.GROUP: self._group_type,
        }
        self._builtins_ready = False

    def resolve(self, field: FieldDefinition) -> Optional[TypeRef]:
        """GraphQL type of ``field``, or ``None`` when it cannot be exposed."""
        base = self.base_type(field)
        if base is None:
            return None
        return base.wrapped(field.wrapping_depth)

    def resolve_field(self, field: FieldDefinition) -> Optional[TypeRef]:
        """Like :meth:`resolve`, with a union for ``post`` fields targeting several content types."""
        if field.kind is FieldKind.POST and len(field.post_type) > 1:
            return self.unions.build_union(field)
        return self.resolve(field)

    def base_type(self, field: FieldDefinition) -> Optional[TypeRef]:
        kind = field.kind
        if kind is None:
            _logger.warning("Unknown Meta Box type supplied to metaboxql: %s", field.type)
            return None
        if kind in UNSUPPORTED_KINDS:
            _logger.warning("Unsupported Meta Box type supplied to metaboxql: %s", field.type)
            return None
        static = _STATIC_TYPES.get(kind)
        if static is not None:
            if static.name in (KEY_VALUE_TYPE, SINGLE_IMAGE_TYPE):
                self.ensure_builtin_types()
            return static
        return self._dynamic[kind](field)

    def field_arguments(self, ref: TypeRef) -> Dict[str, ArgumentConfig]:
        """Argument schema for a field of the given resolved type."""
        if ref.name == SINGLE_IMAGE_TYPE:
            return {
                'size': ArgumentConfig(
                    TypeRef(MEDIA_SIZE_ENUM),
                    description='Single image size',
                    default=MediaItemSizeEnum.THUMBNAIL,
                ),
            }
        return {}

    def ensure_builtin_types(self) -> None:
        if self._builtins_ready:
            return
        self._register_builtin(self.registry.register_enum_type(
            MEDIA_SIZE_ENUM, MediaItemSizeEnum, description='Registered image sizes'))
        self._register_builtin(self.registry.register_object_type(
            KEY_VALUE_TYPE,
            {
                'key': FieldConfig(TypeRef('String'), 'Key', resolver=_record_key_resolver('key', 'String')),
                'value': FieldConfig(TypeRef('String'), 'Value', resolver=_record_key_resolver('value', 'String')),
            },
            description='Meta Box key/value pair',
        ))
        self._register_builtin(self.registry.register_object_type(
            SINGLE_IMAGE_TYPE,
            {
                gql: FieldConfig(TypeRef(scalar), resolver=_record_key_resolver(key, scalar))
                for gql, (key, scalar) in _SINGLE_IMAGE_FIELDS.items()
            },
            description='Meta Box single image',
        ))
        self._builtins_ready = True

    def _register_builtin(self, result: Any) -> None:
        # a registry shared by several resolvers already holds the built-ins
        if not result and result.existing_kind == result.kind:
            _logger.debug("built-in type %s already registered", result.name)
            return
        result.unwrap()

    def _post_type(self, field: FieldDefinition) -> Optional[TypeRef]:
        if not field.post_type:
            _logger.warning("post field %s has no post_type", field.id)
            return None
        post_type = field.post_type[0]
        name = self.catalog.content_type_name(post_type)
        if name is None:
            _logger.warning("Unknown Meta Box post type supplied to metaboxql: %s", post_type)
            return None
        return TypeRef(name)

    def _taxonomy_type(self, field: FieldDefinition) -> Optional[TypeRef]:
        if not field.taxonomy:
            _logger.warning("taxonomy field %s has no taxonomy", field.id)
            return None
        taxonomy = field.taxonomy[0]
        name = self.catalog.taxonomy_type_name(taxonomy)
        if name is None:
            _logger.warning("metaboxql: %s is not in the schema.", taxonomy)
            return None
        return TypeRef(name)

    def _group_type(self, field: FieldDefinition) -> Optional[TypeRef]:
        return TypeRef(self.groups.register_group(field))
