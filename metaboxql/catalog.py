from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .core.naming import ucfirst
from .nodes import PostNode, TermNode, UserNode

__all__ = ['ContentType', 'Taxonomy', 'EntityCatalog', 'USER_TYPE_NAME']

_logger = logging.getLogger("metaboxql")

USER_TYPE_NAME = 'User'


@dataclass(frozen=True)
class ContentType:
    """A registered content type (``post``, ``page``, custom types)."""

    name: str
    graphql_single_name: str
    show_in_graphql: bool = True


@dataclass(frozen=True)
class Taxonomy:
    name: str
    graphql_single_name: str
    show_in_graphql: bool = True


class EntityCatalog:
    """Entity-type discovery: which content types and taxonomies the schema exposes.

    Also acts as the node-type discriminator used by synthesized unions.
    """

    def __init__(self, content_types: Iterable[ContentType] = (), taxonomies: Iterable[Taxonomy] = ()):
        self._content_types: Dict[str, ContentType] = {c.name: c for c in content_types}
        self._taxonomies: Dict[str, Taxonomy] = {t.name: t for t in taxonomies}

    def content_type_name(self, name: str) -> Optional[str]:
        """GraphQL type name of an exposed content type, ``None`` when not exposed."""
        ct = self._content_types.get(name)
        if ct is None or not ct.show_in_graphql:
            return None
        return ucfirst(ct.graphql_single_name)

    def taxonomy_type_name(self, name: str) -> Optional[str]:
        tax = self._taxonomies.get(name)
        if tax is None or not tax.show_in_graphql:
            return None
        return ucfirst(tax.graphql_single_name)

    def resolve_node_type(self, node: Any) -> Optional[str]:
        """Concrete GraphQL type name of an already loaded node."""
        if isinstance(node, UserNode):
            return USER_TYPE_NAME
        if isinstance(node, PostNode):
            return self.content_type_name(node.post_type)
        if isinstance(node, TermNode):
            return self.taxonomy_type_name(node.taxonomy)
        _logger.debug("cannot resolve node type for %r", type(node).__name__)
        return None
