from __future__ import annotations

from typing import Optional

__all__ = [
    'MetaboxQLError',
    'ConfigurationError',
    'RegistrationConflictError',
    'ValueShapeError',
]


class MetaboxQLError(Exception):
    """Base class for all metaboxql errors."""


class ConfigurationError(MetaboxQLError, ValueError):
    """Raised during the build pass for field definitions that cannot be mapped.

    Covers malformed definitions, groups nested inside themselves and two
    different group definitions sharing one GraphQL name.
    """


class RegistrationConflictError(MetaboxQLError, RuntimeError):
    """A type or field name was registered twice with different definitions."""

    def __init__(self, name: str, kind: str, existing_kind: Optional[str] = None):
        self.name = name
        self.kind = kind
        self.existing_kind = existing_kind
        if existing_kind and existing_kind != kind:
            msg = f"Cannot register {kind} '{name}': name already taken by a {existing_kind}"
        else:
            msg = f"Cannot register {kind} '{name}': already registered with a different definition"
        super().__init__(msg)


class ValueShapeError(MetaboxQLError, ValueError):
    """A stored value is nested differently from what the field flags declare."""

    def __init__(self, expected_depth: int, path: str = ''):
        self.expected_depth = expected_depth
        self.path = path
        where = f" at {path}" if path else ''
        super().__init__(
            f"Stored value does not match the declared nesting depth {expected_depth}{where}"
        )
