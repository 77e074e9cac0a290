from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..errors import ConfigurationError

__all__ = [
    'FieldKind',
    'FieldDefinition',
    'MetaBox',
    'UNSUPPORTED_KINDS',
    'BOOLEAN_KINDS',
    'STRING_KINDS',
    'STRING_LIST_KINDS',
    'NUMBER_KINDS',
    'REFERENCE_KINDS',
]


class FieldKind(str, Enum):
    """Closed vocabulary of Meta Box field type tags known to metaboxql.

    Tags outside this enum are still accepted on :class:`FieldDefinition`
    (the plugin vocabulary is open) but map to ``None`` and are excluded
    from the schema.
    """

    # legacy media/layout tags without a GraphQL mapping
    AUTOCOMPLETE = 'autocomplete'
    BUTTON = 'button'
    BUTTON_GROUP = 'button_group'
    DIVIDER = 'divider'
    FILE = 'file'
    FILE_ADVANCED = 'file_advanced'
    FILE_INPUT = 'file_input'
    FILE_UPLOAD = 'file_upload'
    HIDDEN = 'hidden'
    IMAGE = 'image'
    IMAGE_ADVANCED = 'image_advanced'
    IMAGE_SELECT = 'image_select'
    IMAGE_UPLOAD = 'image_upload'
    MAP = 'map'
    PLUPLOAD_IMAGE = 'plupload_image'
    SLIDER = 'slider'
    VIDEO = 'video'
    # booleans
    SWITCH = 'switch'
    CHECKBOX = 'checkbox'
    CHECKBOX_LIST = 'checkbox_list'
    # free text and choices
    BACKGROUND = 'background'
    COLOR = 'color'
    CUSTOM_HTML = 'custom_html'
    DATE = 'date'
    DATETIME = 'datetime'
    HEADING = 'heading'
    OEMBED = 'oembed'
    PASSWORD = 'password'
    RADIO = 'radio'
    SELECT = 'select'
    EMAIL = 'email'
    TEL = 'tel'
    TEXT = 'text'
    TEXTAREA = 'textarea'
    TIME = 'time'
    URL = 'url'
    WYSIWYG = 'wysiwyg'
    FIELDSET_TEXT = 'fieldset_text'
    SELECT_ADVANCED = 'select_advanced'
    TEXT_LIST = 'text_list'
    KEY_VALUE = 'key_value'
    # numbers
    NUMBER = 'number'
    RANGE = 'range'
    # structured
    SINGLE_IMAGE = 'single_image'
    GROUP = 'group'
    # references
    USER = 'user'
    POST = 'post'
    TAXONOMY = 'taxonomy'
    TAXONOMY_ADVANCED = 'taxonomy_advanced'

    @classmethod
    def from_tag(cls, tag: Any) -> Optional['FieldKind']:
        try:
            return cls(str(tag))
        except ValueError:
            return None


UNSUPPORTED_KINDS: FrozenSet[FieldKind] = frozenset({
    FieldKind.AUTOCOMPLETE, FieldKind.BUTTON, FieldKind.BUTTON_GROUP, FieldKind.DIVIDER,
    FieldKind.FILE, FieldKind.FILE_ADVANCED, FieldKind.FILE_INPUT, FieldKind.FILE_UPLOAD,
    FieldKind.HIDDEN, FieldKind.IMAGE, FieldKind.IMAGE_ADVANCED, FieldKind.IMAGE_SELECT,
    FieldKind.IMAGE_UPLOAD, FieldKind.MAP, FieldKind.PLUPLOAD_IMAGE, FieldKind.SLIDER,
    FieldKind.VIDEO,
})

BOOLEAN_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.SWITCH, FieldKind.CHECKBOX})

STRING_KINDS: FrozenSet[FieldKind] = frozenset({
    FieldKind.BACKGROUND, FieldKind.COLOR, FieldKind.CUSTOM_HTML, FieldKind.DATE,
    FieldKind.DATETIME, FieldKind.HEADING, FieldKind.OEMBED, FieldKind.PASSWORD,
    FieldKind.RADIO, FieldKind.SELECT, FieldKind.EMAIL, FieldKind.TEL, FieldKind.TEXT,
    FieldKind.TEXTAREA, FieldKind.TIME, FieldKind.URL, FieldKind.WYSIWYG,
})

STRING_LIST_KINDS: FrozenSet[FieldKind] = frozenset({
    FieldKind.FIELDSET_TEXT, FieldKind.SELECT_ADVANCED, FieldKind.TEXT_LIST,
})

NUMBER_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.NUMBER, FieldKind.RANGE})

REFERENCE_KINDS: FrozenSet[FieldKind] = frozenset({
    FieldKind.USER, FieldKind.POST, FieldKind.TAXONOMY, FieldKind.TAXONOMY_ADVANCED,
})


def _as_tuple(value: Any) -> Tuple[str, ...]:
    """Accept a single identifier or a sequence of identifiers."""
    if value is None or value == '':
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


def _as_bool(value: Any) -> bool:
    return value is True or value in (1, '1', 'true')


@dataclass(frozen=True)
class FieldDefinition:
    """One configurable content field, as declared in a meta box.

    Attributes:
        id: Storage key passed to the meta store.
        type: Raw type tag. Kept as a string because the plugin vocabulary is
            open; see :attr:`kind` for the parsed value.
        graphql_name: Exposed field name. Fields without one are never exposed.
        name: Human label, used as the GraphQL description.
        multiple: Value is a sequence.
        clone: Value is a sequence of repeated values (or groups), independent
            from ``multiple``.
        fields: Children of a ``group`` field.
        post_type: Target content types of a ``post`` field.
        taxonomy: Target taxonomies of a ``taxonomy`` field; the first one wins.
        graphql_mutate: Opt in to mutation input exposure.
    """

    id: str
    type: str
    graphql_name: Optional[str] = None
    name: Optional[str] = None
    multiple: bool = False
    clone: bool = False
    fields: Tuple['FieldDefinition', ...] = ()
    post_type: Tuple[str, ...] = ()
    taxonomy: Tuple[str, ...] = ()
    graphql_mutate: bool = False

    @property
    def kind(self) -> Optional[FieldKind]:
        return FieldKind.from_tag(self.type)

    @property
    def wrapping_depth(self) -> int:
        """Number of list levels added on top of the base type by the flags."""
        return int(bool(self.multiple)) + int(bool(self.clone))

    @property
    def exposed(self) -> bool:
        return bool(self.graphql_name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, _stack: Optional[List[int]] = None) -> 'FieldDefinition':
        """Build a definition tree from a Meta Box field configuration mapping.

        Raises:
            ConfigurationError: when the mapping has no ``id``/``type`` or a
                group contains itself.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Field definition must be a mapping, got {type(data).__name__}")
        if _stack is None:
            _stack = []
        if id(data) in _stack:
            raise ConfigurationError(
                f"Field definition '{data.get('id')}' contains itself"
            )
        field_id = data.get('id')
        tag = data.get('type')
        if not field_id or not tag:
            raise ConfigurationError(f"Field definition requires 'id' and 'type': {dict(data)!r}")
        _stack.append(id(data))
        try:
            children = tuple(
                cls.from_dict(child, _stack=_stack) for child in (data.get('fields') or ())
            )
        finally:
            _stack.pop()
        return cls(
            id=str(field_id),
            type=str(tag),
            graphql_name=data.get('graphql_name') or None,
            name=data.get('name'),
            multiple=_as_bool(data.get('multiple')),
            clone=_as_bool(data.get('clone')),
            fields=children,
            post_type=_as_tuple(data.get('post_type')),
            taxonomy=_as_tuple(data.get('taxonomy')),
            graphql_mutate=data.get('graphql_mutate') is True,
        )


@dataclass(frozen=True)
class MetaBox:
    """A meta box: a titled set of fields attached to one kind of entity.

    ``object_type`` follows Meta Box conventions: ``user`` meta boxes declare
    ``type: 'user'``, term meta boxes declare ``taxonomies``, everything else
    attaches to the content types in ``post_types``.
    """

    id: str
    title: Optional[str] = None
    object_type: str = 'post'
    post_types: Tuple[str, ...] = ('post',)
    taxonomies: Tuple[str, ...] = ()
    fields: Tuple[FieldDefinition, ...] = dc_field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MetaBox':
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Meta box must be a mapping, got {type(data).__name__}")
        taxonomies = _as_tuple(data.get('taxonomies'))
        if data.get('type') == 'user':
            object_type = 'user'
        elif taxonomies:
            object_type = 'term'
        else:
            object_type = 'post'
        fields: Sequence[Any] = data.get('fields') or ()
        return cls(
            id=str(data.get('id') or data.get('title') or ''),
            title=data.get('title'),
            object_type=object_type,
            post_types=_as_tuple(data.get('post_types')) or ('post',),
            taxonomies=taxonomies,
            fields=tuple(FieldDefinition.from_dict(f) for f in fields),
        )
