from __future__ import annotations

import keyword
from typing import Iterable

__all__ = [
    'ucfirst',
    'union_type_name',
    'create_input_name',
    'update_input_name',
    'python_attr_name',
]


def ucfirst(name: str) -> str:
    """Upper-case the first character only; the rest is kept as is."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def union_type_name(graphql_name: str, member_names: Iterable[str]) -> str:
    """Deterministic name for a synthesized union.

    >>> union_type_name('featured', ['Post', 'Page'])
    'FeaturedToPostAndPageUnion'
    """
    members = [ucfirst(m) for m in member_names]
    return f"{ucfirst(graphql_name)}To{'And'.join(members)}Union"


def create_input_name(singular_name: str) -> str:
    return f"Create{ucfirst(singular_name)}Input"


def update_input_name(singular_name: str) -> str:
    return f"Update{ucfirst(singular_name)}Input"


def python_attr_name(graphql_name: str) -> str:
    """Attribute name used on generated classes for a GraphQL field name."""
    if keyword.iskeyword(graphql_name):
        return graphql_name + '_'
    return graphql_name
