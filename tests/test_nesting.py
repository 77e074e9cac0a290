import asyncio

import pytest

from metaboxql.core.nesting import adapt, is_sequence, resolve_nested
from metaboxql.errors import ValueShapeError


def double(v):
    return v * 2


def test_is_sequence():
    assert is_sequence([1]) and is_sequence((1,))
    assert not is_sequence("abc")
    assert not is_sequence({"a": 1})
    assert not is_sequence(None)


def test_shape_driven_adapt():
    assert adapt(3, double) == 6
    assert adapt([1, 2], double) == [2, 4]
    assert adapt([[1], [2, 3]], double) == [[2], [4, 6]]
    # mixed rows: sequences are mapped, scalars are leaves
    assert adapt([[1], 2], double) == [[2], 4]
    assert adapt("ab", double) == "abab"


def test_declared_depth_adapt():
    assert adapt(3, double, 0) == 6
    assert adapt([1, 2], double, 1) == [2, 4]
    assert adapt([[1], [2, 3]], double, 2) == [[2], [4, 6]]
    # a list stored on a depth-0 field is handed to the leaf untouched
    assert adapt([1, 2], len, 0) == 2


def test_declared_depth_passes_none_through():
    assert adapt(None, double, 1) is None
    assert adapt([None, [1]], double, 2) == [None, [2]]


def test_declared_depth_shape_mismatch():
    with pytest.raises(ValueShapeError) as exc:
        adapt(5, double, 1)
    assert exc.value.expected_depth == 1

    with pytest.raises(ValueShapeError) as exc:
        adapt([[1], 2], double, 2)
    assert exc.value.path == "[1]"
    assert "[1]" in str(exc.value)


@pytest.mark.asyncio
async def test_resolve_nested_keeps_shape():
    async def later(v):
        await asyncio.sleep(0)
        return v * 10

    value = [[later(1), None], [later(2)], 3]
    assert await resolve_nested(value) == [[10, None], [20], 3]
    assert await resolve_nested(later(4)) == 40
    assert await resolve_nested("plain") == "plain"
