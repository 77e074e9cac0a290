from __future__ import annotations

from typing import Dict, Iterable, List

from ..errors import ConfigurationError
from .fields import FieldDefinition, FieldKind

__all__ = ['validate_definitions']


def validate_definitions(fields: Iterable[FieldDefinition]) -> Dict[str, FieldDefinition]:
    """Walk a field-definition forest before anything is registered.

    Fails fast on a group nested (directly or not) inside a group of the same
    GraphQL name and on two different group definitions sharing a name.
    Identical definitions reachable from several parents are fine; they are
    registered once.

    Returns:
        Mapping of group GraphQL name to its definition.
    """
    groups: Dict[str, FieldDefinition] = {}
    for fdef in fields:
        _walk(fdef, [], groups)
    return groups


def _walk(fdef: FieldDefinition, stack: List[str], groups: Dict[str, FieldDefinition]) -> None:
    if fdef.kind is not FieldKind.GROUP or not fdef.graphql_name:
        return
    name = fdef.graphql_name
    if name in stack:
        chain = ' -> '.join(stack + [name])
        raise ConfigurationError(f"Group '{name}' is nested inside itself: {chain}")
    seen = groups.get(name)
    if seen is not None and seen != fdef:
        raise ConfigurationError(
            f"Group name '{name}' is used by two different group definitions "
            f"(fields '{seen.id}' and '{fdef.id}')"
        )
    groups[name] = fdef
    stack.append(name)
    try:
        for child in fdef.fields:
            _walk(child, stack, groups)
    finally:
        stack.pop()
