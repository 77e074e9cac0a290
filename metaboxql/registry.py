from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field, is_dataclass, fields as dc_fields
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

import strawberry
from strawberry.types import Info as StrawberryInfo
from strawberry.schema.config import StrawberryConfig

from .core.naming import python_attr_name
from .errors import ConfigurationError, RegistrationConflictError

__all__ = [
    'TypeRef',
    'ArgumentConfig',
    'FieldConfig',
    'ObjectTypeConfig',
    'UnionTypeConfig',
    'EnumTypeConfig',
    'InputTypeConfig',
    'Registered',
    'RegistrationConflict',
    'PostMutationEvent',
    'SchemaRegistry',
    'SCALARS',
    'input_to_dict',
]

_logger = logging.getLogger("metaboxql")

UNSET = strawberry.UNSET

SCALARS: Dict[str, Any] = {
    'String': str,
    'Boolean': bool,
    'Float': float,
    'Int': int,
    'ID': strawberry.ID,
}


@dataclass(frozen=True)
class TypeRef:
    """A named GraphQL type wrapped in ``list_depth`` list modifiers.

    Every level is nullable; ``TypeRef('String', 2)`` is ``[[String]]``.
    """

    name: str
    list_depth: int = 0

    def list_of(self) -> 'TypeRef':
        return TypeRef(self.name, self.list_depth + 1)

    def wrapped(self, times: int) -> 'TypeRef':
        return TypeRef(self.name, self.list_depth + max(0, times))

    def __str__(self) -> str:
        return '[' * self.list_depth + self.name + ']' * self.list_depth


@dataclass
class ArgumentConfig:
    type: TypeRef
    description: Optional[str] = None
    default: Any = None


@dataclass
class FieldConfig:
    """A field on an object or input type.

    ``resolver`` is called as ``resolver(root, info, **arguments)`` and may be
    sync or async. Without one the field reads the attribute of the same name.
    """

    type: TypeRef
    description: Optional[str] = None
    resolver: Optional[Callable[..., Any]] = None
    args: Dict[str, ArgumentConfig] = field(default_factory=dict)


@dataclass
class ObjectTypeConfig:
    name: str
    description: Optional[str] = None
    fields: Dict[str, FieldConfig] = field(default_factory=dict)


@dataclass
class UnionTypeConfig:
    name: str
    type_names: Tuple[str, ...]
    resolve_type: Callable[[Any], Optional[str]]
    description: Optional[str] = None


@dataclass
class EnumTypeConfig:
    name: str
    enum: Type[Enum]
    description: Optional[str] = None


@dataclass
class InputTypeConfig:
    name: str
    description: Optional[str] = None
    fields: Dict[str, FieldConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class Registered:
    name: str
    kind: str

    def __bool__(self) -> bool:
        return True

    def unwrap(self) -> str:
        return self.name


@dataclass(frozen=True)
class RegistrationConflict:
    """Typed result for a duplicate registration; the registry never overwrites."""

    name: str
    kind: str
    existing_kind: Optional[str] = None

    def __bool__(self) -> bool:
        return False

    def unwrap(self) -> str:
        raise RegistrationConflictError(self.name, self.kind, self.existing_kind)


RegistrationResult = Union[Registered, RegistrationConflict]


@dataclass
class PostMutationEvent:
    """Payload handed to post-mutation hooks once an entity mutation completed."""

    type_name: str
    entity_id: Any
    input: Dict[str, Any]
    object_type: str = 'post'
    info: Optional[StrawberryInfo] = None


def input_to_dict(obj: Any) -> Any:
    """Convert a Strawberry input instance (or nested list/dict) to plain data.

    Keys are GraphQL field names. Omitted (``UNSET``) fields are dropped;
    explicit nulls are kept.
    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [input_to_dict(x) for x in obj]
    if isinstance(obj, Mapping):
        return {k: input_to_dict(v) for k, v in obj.items() if v is not UNSET}
    definition = getattr(obj, '__strawberry_definition__', None)
    if definition is not None:
        out: Dict[str, Any] = {}
        for f in definition.fields:
            v = getattr(obj, f.python_name, UNSET)
            if v is UNSET:
                continue
            out[f.graphql_name or f.python_name] = input_to_dict(v)
        return out
    if is_dataclass(obj):
        return {
            f.name: input_to_dict(getattr(obj, f.name))
            for f in dc_fields(obj)
            if getattr(obj, f.name) is not UNSET
        }
    return obj


def _make_strawberry_resolver(fn: Callable[..., Any], arguments: Dict[str, Any]) -> Callable[..., Any]:
    """Wrap ``fn`` into an async resolver whose signature declares ``arguments``.

    Strawberry reads arguments from the signature and annotations, so both are
    set explicitly; the body forwards keyword arguments unchanged.
    """
    async def _resolver(self, info, **kwargs):  # noqa: D401
        result = fn(self, info, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    params = [
        inspect.Parameter('self', inspect.Parameter.POSITIONAL_OR_KEYWORD),
        inspect.Parameter('info', inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=StrawberryInfo),
    ]
    anns: Dict[str, Any] = {'info': StrawberryInfo}
    for aname, (annotation, default) in arguments.items():
        params.append(inspect.Parameter(aname, inspect.Parameter.KEYWORD_ONLY, default=default, annotation=annotation))
        anns[aname] = annotation
    _resolver.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]
    _resolver.__annotations__ = anns
    _resolver.__module__ = __name__
    return _resolver


class SchemaRegistry:
    """Explicit registry of GraphQL types, built into a Strawberry schema on demand.

    Names are unique across all kinds. Registering a taken name returns a
    :class:`RegistrationConflict` instead of replacing the existing entry.
    """

    def __init__(self, *, query_name: str = 'RootQuery', mutation_name: str = 'RootMutation'):
        self.query_name = query_name
        self.mutation_name = mutation_name
        self._objects: Dict[str, ObjectTypeConfig] = {}
        self._unions: Dict[str, UnionTypeConfig] = {}
        self._enums: Dict[str, EnumTypeConfig] = {}
        self._inputs: Dict[str, InputTypeConfig] = {}
        self._input_extensions: Dict[str, Dict[str, FieldConfig]] = {}
        self._query_fields: Dict[str, FieldConfig] = {}
        self._mutation_fields: Dict[str, FieldConfig] = {}
        self._post_mutation_hooks: List[Callable[[PostMutationEvent], Any]] = []
        self._st_types: Dict[str, Any] = {}
        self._union_annotations: Dict[str, Any] = {}

    # ---------- Lookup ----------
    def kind_of(self, name: str) -> Optional[str]:
        if name in SCALARS:
            return 'scalar'
        if name in self._objects:
            return 'object'
        if name in self._unions:
            return 'union'
        if name in self._enums:
            return 'enum'
        if name in self._inputs:
            return 'input'
        return None

    def has_type(self, name: str) -> bool:
        return self.kind_of(name) is not None

    def object_type(self, name: str) -> Optional[ObjectTypeConfig]:
        return self._objects.get(name)

    def union_type(self, name: str) -> Optional[UnionTypeConfig]:
        return self._unions.get(name)

    def input_fields(self, name: str) -> Dict[str, FieldConfig]:
        """Declared plus extended fields of an input type."""
        cfg = self._inputs.get(name)
        out = dict(cfg.fields) if cfg else {}
        out.update(self._input_extensions.get(name, {}))
        return out

    def _conflict(self, name: str, kind: str) -> Optional[RegistrationConflict]:
        existing = self.kind_of(name)
        if existing is not None:
            return RegistrationConflict(name, kind, existing)
        return None

    # ---------- Registration ----------
    def register_object_type(self, name: str, fields: Optional[Dict[str, FieldConfig]] = None, *, description: Optional[str] = None) -> RegistrationResult:
        conflict = self._conflict(name, 'object')
        if conflict is not None:
            return conflict
        self._objects[name] = ObjectTypeConfig(name=name, description=description, fields=dict(fields or {}))
        return Registered(name, 'object')

    def register_union_type(self, name: str, type_names: Tuple[str, ...], resolve_type: Callable[[Any], Optional[str]], *, description: Optional[str] = None) -> RegistrationResult:
        conflict = self._conflict(name, 'union')
        if conflict is not None:
            return conflict
        self._unions[name] = UnionTypeConfig(name=name, type_names=tuple(type_names), resolve_type=resolve_type, description=description)
        return Registered(name, 'union')

    def register_enum_type(self, name: str, enum_cls: Type[Enum], *, description: Optional[str] = None) -> RegistrationResult:
        conflict = self._conflict(name, 'enum')
        if conflict is not None:
            return conflict
        self._enums[name] = EnumTypeConfig(name=name, enum=enum_cls, description=description)
        return Registered(name, 'enum')

    def register_input_type(self, name: str, fields: Optional[Dict[str, FieldConfig]] = None, *, description: Optional[str] = None) -> RegistrationResult:
        conflict = self._conflict(name, 'input')
        if conflict is not None:
            return conflict
        self._inputs[name] = InputTypeConfig(name=name, description=description, fields=dict(fields or {}))
        return Registered(name, 'input')

    def register_field(self, type_name: str, field_name: str, config: FieldConfig) -> RegistrationResult:
        """Add a field to an already registered object type."""
        obj = self._objects.get(type_name)
        if obj is None:
            raise KeyError(f"Object type '{type_name}' is not registered")
        if field_name in obj.fields:
            return RegistrationConflict(f"{type_name}.{field_name}", 'field', 'field')
        obj.fields[field_name] = config
        return Registered(f"{type_name}.{field_name}", 'field')

    def register_query_field(self, field_name: str, config: FieldConfig) -> RegistrationResult:
        if field_name in self._query_fields:
            return RegistrationConflict(f"{self.query_name}.{field_name}", 'field', 'field')
        self._query_fields[field_name] = config
        return Registered(f"{self.query_name}.{field_name}", 'field')

    def register_mutation_field(self, field_name: str, config: FieldConfig) -> RegistrationResult:
        if field_name in self._mutation_fields:
            return RegistrationConflict(f"{self.mutation_name}.{field_name}", 'field', 'field')
        self._mutation_fields[field_name] = config
        return Registered(f"{self.mutation_name}.{field_name}", 'field')

    def extend_input_fields(self, type_name: str, field_name: str, config: FieldConfig) -> RegistrationResult:
        """Add a field to an input type; the input type may be registered later."""
        ext = self._input_extensions.setdefault(type_name, {})
        declared = self._inputs.get(type_name)
        if field_name in ext or (declared is not None and field_name in declared.fields):
            return RegistrationConflict(f"{type_name}.{field_name}", 'input field', 'input field')
        ext[field_name] = config
        return Registered(f"{type_name}.{field_name}", 'input field')

    # ---------- Post-mutation hooks ----------
    def on_post_mutation(self, hook: Callable[[PostMutationEvent], Any]) -> Callable[[PostMutationEvent], Any]:
        """Register a hook run after an entity mutation; usable as a decorator."""
        self._post_mutation_hooks.append(hook)
        return hook

    async def run_post_mutation(self, type_name: str, entity_id: Any, input: Any, *, object_type: str = 'post', info: Optional[StrawberryInfo] = None) -> None:
        """Called by mutation resolvers once the entity itself has been saved."""
        data = input_to_dict(input) or {}
        event = PostMutationEvent(type_name=type_name, entity_id=entity_id, input=data, object_type=object_type, info=info)
        for hook in list(self._post_mutation_hooks):
            res = hook(event)
            if inspect.isawaitable(res):
                await res

    # ---------- Strawberry build ----------
    def _named(self, name: str) -> Any:
        if name in SCALARS:
            return SCALARS[name]
        if name in self._union_annotations:
            return self._union_annotations[name]
        st = self._st_types.get(name)
        if st is None:
            raise ConfigurationError(f"Type '{name}' is referenced but not registered")
        return st

    def annotation_for(self, ref: TypeRef) -> Any:
        t: Any = Optional[self._named(ref.name)]
        for _ in range(ref.list_depth):
            t = Optional[List[t]]  # type: ignore[valid-type]
        return t

    def _strawberry_field(self, field_name: str, cfg: FieldConfig, *, is_input: bool = False) -> Any:
        if cfg.resolver is None:
            return strawberry.field(
                name=field_name,
                description=cfg.description,
                default=UNSET if is_input else None,
            )
        arguments: Dict[str, Any] = {}
        for aname, acfg in cfg.args.items():
            ann = Annotated[self.annotation_for(acfg.type), strawberry.argument(description=acfg.description)]
            arguments[aname] = (ann, acfg.default)
        return strawberry.field(
            resolver=_make_strawberry_resolver(cfg.resolver, arguments),
            name=field_name,
            description=cfg.description,
        )

    def _populate(self, cls: Any, fields: Dict[str, FieldConfig], *, is_input: bool = False) -> None:
        annotations: Dict[str, Any] = {}
        for fname, fcfg in fields.items():
            attr = python_attr_name(fname)
            annotations[attr] = self.annotation_for(fcfg.type)
            setattr(cls, attr, self._strawberry_field(fname, fcfg, is_input=is_input))
        cls.__annotations__ = annotations

    def _is_type_of_for(self, type_name: str, resolvers: List[Callable[[Any], Optional[str]]]):
        def is_type_of(cls, obj: Any, info: Any) -> bool:
            if isinstance(obj, cls):
                return True
            return any(r(obj) == type_name for r in resolvers)
        return classmethod(is_type_of)

    def to_strawberry(self, *, strawberry_config: Optional[StrawberryConfig] = None) -> strawberry.Schema:
        """Build a fresh ``strawberry.Schema`` from the registry contents."""
        self._st_types = {}
        self._union_annotations = {}
        # Two-pass: create plain classes first so fields can reference any type
        for name, ecfg in self._enums.items():
            self._st_types[name] = strawberry.enum(ecfg.enum, name=name, description=ecfg.description)  # type: ignore
        for name, ocfg in list(self._objects.items()) + list(self._inputs.items()):
            cls = type(name, (), {'__doc__': ocfg.description or name})
            cls.__module__ = __name__
            self._st_types[name] = cls
        member_resolvers: Dict[str, List[Callable[[Any], Optional[str]]]] = {}
        for name, ucfg in self._unions.items():
            members = []
            for tname in ucfg.type_names:
                if tname not in self._objects:
                    raise ConfigurationError(f"Union '{name}' member '{tname}' is not a registered object type")
                members.append(self._st_types[tname])
                member_resolvers.setdefault(tname, []).append(ucfg.resolve_type)
            # Union[(A,)] is A; the union marker keeps a one-member union named
            self._union_annotations[name] = Annotated[
                Union[tuple(members)],  # type: ignore[valid-type]
                strawberry.union(name, description=ucfg.description),
            ]
        for tname, resolvers in member_resolvers.items():
            setattr(self._st_types[tname], 'is_type_of', self._is_type_of_for(tname, resolvers))

        # Second pass: attach fields, then decorate
        for name, icfg in self._inputs.items():
            self._populate(self._st_types[name], self.input_fields(name), is_input=True)
            self._st_types[name] = strawberry.input(self._st_types[name], name=name, description=icfg.description)
        for type_name in self._input_extensions:
            if type_name not in self._inputs:
                _logger.debug("input type %s is not registered; its extensions are not exposed", type_name)
        for name, ocfg in self._objects.items():
            self._populate(self._st_types[name], ocfg.fields)
            self._st_types[name] = strawberry.type(self._st_types[name], name=name, description=ocfg.description)

        query_cls = type(self.query_name, (), {'__doc__': 'Root query'})
        query_cls.__module__ = __name__
        self._populate(query_cls, self._query_fields)
        query = strawberry.type(query_cls, name=self.query_name)
        mutation = None
        if self._mutation_fields:
            mutation_cls = type(self.mutation_name, (), {'__doc__': 'Root mutation'})
            mutation_cls.__module__ = __name__
            self._populate(mutation_cls, self._mutation_fields)
            mutation = strawberry.type(mutation_cls, name=self.mutation_name)
        extra_types = [self._st_types[name] for name in self._objects]
        return strawberry.Schema(
            query=query,
            mutation=mutation,
            types=extra_types,
            config=strawberry_config or StrawberryConfig(auto_camel_case=False),
        )
