from enum import Enum

import pytest
import strawberry

from metaboxql.errors import ConfigurationError, RegistrationConflictError
from metaboxql.registry import (
    ArgumentConfig,
    FieldConfig,
    Registered,
    RegistrationConflict,
    SchemaRegistry,
    TypeRef,
    input_to_dict,
)


class Color(Enum):
    RED = 'red'
    BLUE = 'blue'


def test_type_ref_wrapping():
    ref = TypeRef('String')
    assert str(ref) == 'String'
    assert str(ref.wrapped(2)) == '[[String]]'
    assert ref.list_of() == TypeRef('String', 1)
    assert ref.wrapped(-1) == ref


def test_registration_is_unique_across_kinds():
    reg = SchemaRegistry()
    first = reg.register_object_type('Thing', {'id': FieldConfig(TypeRef('ID'))})
    assert isinstance(first, Registered) and first
    assert first.unwrap() == 'Thing'

    dup = reg.register_union_type('Thing', ('Thing',), lambda obj: 'Thing')
    assert isinstance(dup, RegistrationConflict)
    assert not dup
    assert dup.existing_kind == 'object'
    with pytest.raises(RegistrationConflictError, match="already taken by a object"):
        dup.unwrap()

    again = reg.register_object_type('Thing', {'x': FieldConfig(TypeRef('String'))})
    assert isinstance(again, RegistrationConflict)
    assert set(reg.object_type('Thing').fields) == {'id'}

    assert not reg.register_enum_type('String', Color)
    assert reg.kind_of('Thing') == 'object'
    assert reg.kind_of('Missing') is None


def test_field_registration():
    reg = SchemaRegistry()
    reg.register_object_type('Thing').unwrap()
    assert reg.register_field('Thing', 'name', FieldConfig(TypeRef('String'))).unwrap() == 'Thing.name'
    again = reg.register_field('Thing', 'name', FieldConfig(TypeRef('Int')))
    assert not again
    with pytest.raises(RegistrationConflictError):
        again.unwrap()
    # the first registration wins
    assert reg.object_type('Thing').fields['name'].type == TypeRef('String')
    with pytest.raises(KeyError):
        reg.register_field('Nope', 'x', FieldConfig(TypeRef('String')))


def test_input_extensions_merge_with_declared_fields():
    reg = SchemaRegistry()
    assert reg.extend_input_fields('CreateThingInput', 'color', FieldConfig(TypeRef('String'))).unwrap()
    reg.register_input_type('CreateThingInput', {'title': FieldConfig(TypeRef('String'))}).unwrap()
    assert set(reg.input_fields('CreateThingInput')) == {'title', 'color'}
    assert not reg.extend_input_fields('CreateThingInput', 'title', FieldConfig(TypeRef('String')))


@pytest.mark.asyncio
async def test_built_schema_executes_sync_and_async_resolvers():
    reg = SchemaRegistry()
    reg.register_enum_type('Color', Color).unwrap()
    reg.register_object_type('Thing', {
        'name': FieldConfig(TypeRef('String'), 'Thing name'),
        'shout': FieldConfig(
            TypeRef('String'),
            resolver=lambda root, info, times=1: (root.name.upper() + '!') * times,
            args={'times': ArgumentConfig(TypeRef('Int'), 'Repeat count', 1)},
        ),
    }).unwrap()

    class ThingRow:
        name = 'box'

    async def things(root, info, color=None):
        return [ThingRow()] if color is Color.RED else []

    reg.register_query_field('things', FieldConfig(
        TypeRef('Thing', 1), resolver=things, args={'color': ArgumentConfig(TypeRef('Color'))},
    )).unwrap()
    schema = reg.to_strawberry()

    res = await schema.execute('{ things(color: RED) { name shout(times: 2) } }')
    assert res.errors is None, res.errors
    assert res.data == {'things': [{'name': 'box', 'shout': 'BOX!BOX!'}]}

    res = await schema.execute('{ things(color: BLUE) { name } }')
    assert res.errors is None, res.errors
    assert res.data == {'things': []}
    assert schema.get_type_by_name('RootQuery') is not None


def test_unregistered_reference_fails_the_build():
    reg = SchemaRegistry()
    reg.register_query_field('ghost', FieldConfig(TypeRef('Ghost'), resolver=lambda root, info: None)).unwrap()
    with pytest.raises(ConfigurationError, match="Ghost"):
        reg.to_strawberry()


def test_union_members_must_be_object_types():
    reg = SchemaRegistry()
    reg.register_union_type('Both', ('A', 'B'), lambda obj: None).unwrap()
    with pytest.raises(ConfigurationError, match="member 'A'"):
        reg.to_strawberry()


@pytest.mark.asyncio
async def test_post_mutation_hooks_receive_plain_input():
    reg = SchemaRegistry()
    events = []

    @reg.on_post_mutation
    def record(event):
        events.append(event)

    async def record_async(event):
        events.append(('async', event.type_name))

    reg.on_post_mutation(record_async)

    await reg.run_post_mutation('Post', 5, {'title': 'x', 'skip': strawberry.UNSET}, info=None)
    assert events[0].type_name == 'Post'
    assert events[0].entity_id == 5
    assert events[0].input == {'title': 'x'}
    assert events[0].object_type == 'post'
    assert events[1] == ('async', 'Post')


def test_input_to_dict_handles_nested_values():
    assert input_to_dict(None) is None
    assert input_to_dict({'a': [Color.RED, {'b': strawberry.UNSET, 'c': None}]}) == {'a': ['red', {'c': None}]}
