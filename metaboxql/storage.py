"""Meta value storage accessors.

The resolvers only depend on the :class:`MetaStore` protocol. Two
implementations ship with the package: a dict-backed store used by tests and
demos, and :class:`SqlMetaStore`, a SQLAlchemy (async) store keeping one row
per ``(object_type, object_id, meta_key)`` with a JSON value.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Tuple, Union

from sqlalchemy import JSON, Column, Integer, String, UniqueConstraint, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

__all__ = [
    'MetaStore',
    'InMemoryMetaStore',
    'SqlMetaStore',
    'MetaBase',
    'MetaValue',
    'select_image_size',
]

_logger = logging.getLogger("metaboxql")

MetaOptions = Optional[Mapping[str, Any]]


class MetaStore(Protocol):
    """Storage accessor consumed by field resolvers. Methods may be sync or async."""

    def get(self, field_id: str, entity_id: Any, options: MetaOptions = None) -> Union[Any, Awaitable[Any]]:
        ...

    def set(self, field_id: str, entity_id: Any, value: Any, options: MetaOptions = None) -> Union[None, Awaitable[None]]:
        ...


def _object_type(options: MetaOptions) -> str:
    if not options:
        return 'post'
    return str(options.get('object_type') or 'post')


def select_image_size(value: Any, size: Optional[str]) -> Any:
    """Pick the rendition of an image record for ``size``.

    Image records may carry a ``sizes`` mapping of per-size overrides
    (``url``, ``width``, ``height``); the chosen one is merged over the base
    record. Records without one are returned unchanged.
    """
    if not size or not isinstance(value, Mapping):
        return value
    sizes = value.get('sizes')
    if not isinstance(sizes, Mapping) or size not in sizes:
        return value
    merged = {k: v for k, v in value.items() if k != 'sizes'}
    merged.update(sizes[size] or {})
    return merged


class InMemoryMetaStore:
    """Dict-backed meta store."""

    def __init__(self, data: Optional[Dict[Tuple[str, str, str], Any]] = None):
        self._data: Dict[Tuple[str, str, str], Any] = dict(data or {})

    @staticmethod
    def _key(field_id: str, entity_id: Any, options: MetaOptions) -> Tuple[str, str, str]:
        return (_object_type(options), str(entity_id), str(field_id))

    def get(self, field_id: str, entity_id: Any, options: MetaOptions = None) -> Any:
        value = copy.deepcopy(self._data.get(self._key(field_id, entity_id, options)))
        return select_image_size(value, (options or {}).get('size'))

    def set(self, field_id: str, entity_id: Any, value: Any, options: MetaOptions = None) -> None:
        self._data[self._key(field_id, entity_id, options)] = copy.deepcopy(value)


class MetaBase(DeclarativeBase):
    pass


class MetaValue(MetaBase):
    """One stored meta value."""

    __tablename__ = 'metaboxql_meta'
    __table_args__ = (
        UniqueConstraint('object_type', 'object_id', 'meta_key', name='uq_metaboxql_meta_key'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    object_type = Column(String(20), nullable=False, default='post', comment="post, user or term")
    object_id = Column(String(64), nullable=False, index=True)
    meta_key = Column(String(255), nullable=False, index=True)
    meta_value = Column(JSON, nullable=True)


class SqlMetaStore:
    """Async SQLAlchemy meta store.

    Args:
        session_factory: Callable returning an ``AsyncSession`` usable as an
            async context manager, typically an ``async_sessionmaker``.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def get(self, field_id: str, entity_id: Any, options: MetaOptions = None) -> Any:
        stmt = (
            select(MetaValue.meta_value)
            .where(MetaValue.object_type == _object_type(options))
            .where(MetaValue.object_id == str(entity_id))
            .where(MetaValue.meta_key == str(field_id))
        )
        async with self._session_factory() as session:
            value = (await session.execute(stmt)).scalar_one_or_none()
        return select_image_size(value, (options or {}).get('size'))

    async def set(self, field_id: str, entity_id: Any, value: Any, options: MetaOptions = None) -> None:
        object_type = _object_type(options)
        async with self._session_factory() as session:
            stmt = (
                select(MetaValue)
                .where(MetaValue.object_type == object_type)
                .where(MetaValue.object_id == str(entity_id))
                .where(MetaValue.meta_key == str(field_id))
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                session.add(MetaValue(
                    object_type=object_type,
                    object_id=str(entity_id),
                    meta_key=str(field_id),
                    meta_value=value,
                ))
            else:
                row.meta_value = value
            await session.commit()
        _logger.debug("stored meta %s for %s %s", field_id, object_type, entity_id)
