"""Narrow raw stored values to what the declared GraphQL type can serialize.

Every coercer is total: a malformed value becomes ``None`` instead of an
exception, so a bad row in the meta table never breaks a whole query.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .fields import (
    BOOLEAN_KINDS,
    NUMBER_KINDS,
    REFERENCE_KINDS,
    STRING_KINDS,
    STRING_LIST_KINDS,
    FieldKind,
)

__all__ = ['Coercer', 'coerce', 'coercer_for', 'scalar_coercer']

Coercer = Callable[[Any], Any]

_TRUE_STRINGS = ('true', 't', '1', 'yes', 'y', 'on')
_FALSE_STRINGS = ('false', 'f', '0', 'no', 'n', 'off', '')


def _null(_raw: Any) -> None:
    return None


def _present(raw: Any) -> Any:
    return raw if raw is not None else None


def _mapping(raw: Any) -> Optional[Mapping[str, Any]]:
    return raw if isinstance(raw, Mapping) else None


def _number(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def _boolean(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lv = raw.strip().lower()
        if lv in _TRUE_STRINGS:
            return True
        if lv in _FALSE_STRINGS:
            return False
    return None


def _string(raw: Any) -> Optional[str]:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return '1' if raw else '0'
    if isinstance(raw, (int, float)):
        return str(raw)
    return None


def _list_of(item: Coercer) -> Coercer:
    def _coerce_list(raw: Any) -> Optional[List[Any]]:
        if not isinstance(raw, (list, tuple)):
            return None
        return [item(v) for v in raw]
    return _coerce_list


def _key_value(raw: Any) -> Optional[List[Optional[Dict[str, Optional[str]]]]]:
    if not isinstance(raw, (list, tuple)):
        return None
    out: List[Optional[Dict[str, Optional[str]]]] = []
    for pair in raw:
        if isinstance(pair, Mapping) and 'key' in pair:
            out.append({'key': _string(pair.get('key')), 'value': _string(pair.get('value'))})
        elif isinstance(pair, (list, tuple)) and len(pair) == 2:
            out.append({'key': _string(pair[0]), 'value': _string(pair[1])})
        else:
            out.append(None)
    return out


_COERCERS: Dict[FieldKind, Coercer] = {
    FieldKind.GROUP: _present,
    FieldKind.SINGLE_IMAGE: _mapping,
    FieldKind.CHECKBOX_LIST: _list_of(_boolean),
    FieldKind.KEY_VALUE: _key_value,
}
_COERCERS.update({k: _number for k in NUMBER_KINDS})
_COERCERS.update({k: _boolean for k in BOOLEAN_KINDS})
_COERCERS.update({k: _string for k in STRING_KINDS})
_COERCERS.update({k: _list_of(_string) for k in STRING_LIST_KINDS})
_COERCERS.update({k: _present for k in REFERENCE_KINDS})


def _integer(raw: Any) -> Optional[int]:
    value = _number(raw)
    if value is None or not value.is_integer():
        return None
    return int(value)


_SCALAR_COERCERS: Dict[str, Coercer] = {
    'String': _string,
    'ID': _string,
    'Boolean': _boolean,
    'Float': _number,
    'Int': _integer,
}


def scalar_coercer(scalar_name: str) -> Coercer:
    """Coercer for a GraphQL scalar name, used by the built-in object types."""
    return _SCALAR_COERCERS.get(scalar_name, _null)


def coercer_for(kind: Union[FieldKind, str, None]) -> Coercer:
    """Return the leaf coercer for a field type; unknown types always yield ``None``."""
    if not isinstance(kind, FieldKind):
        kind = FieldKind.from_tag(kind) if kind is not None else None
    if kind is None:
        return _null
    return _COERCERS.get(kind, _null)


def coerce(kind: Union[FieldKind, str, None], raw: Any) -> Any:
    return coercer_for(kind)(raw)
