"""Entity records handed to field resolvers and returned by reference loaders.

These mirror the host's models: content items and terms are addressed by
``id`` / ``term_id``; users carry a separate ``user_id`` (their ``id`` is the
opaque global id exposed on the schema).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from strawberry.relay.utils import to_base64

__all__ = ['PostNode', 'UserNode', 'TermNode', 'entity_id_of', 'object_type_of']


@dataclass
class PostNode:
    id: int
    post_type: str = 'post'
    title: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class UserNode:
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def id(self) -> str:
        return to_base64('user', self.user_id)


@dataclass
class TermNode:
    term_id: int
    taxonomy: str = 'category'
    name: Optional[str] = None

    @property
    def id(self) -> int:
        return self.term_id


def entity_id_of(entity: Any) -> Any:
    """Storage id of an entity: ``user_id`` for users, ``id`` for everything else."""
    if isinstance(entity, UserNode):
        return entity.user_id
    if isinstance(entity, Mapping):
        return entity.get('id')
    return getattr(entity, 'id', None)


def object_type_of(entity: Any) -> str:
    """Meta Box object type of an entity, passed to the store as a retrieval option."""
    if isinstance(entity, UserNode):
        return 'user'
    if isinstance(entity, TermNode):
        return 'term'
    return 'post'
