from __future__ import annotations

import hashlib
import json
from typing import Any

from strawberry.relay.utils import to_base64

__all__ = ['payload_digest', 'group_global_id']


def payload_digest(payload: Any) -> str:
    """md5 of a canonical JSON rendering; key order does not change the digest."""
    encoded = json.dumps(payload, sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.md5(encoded.encode('utf-8')).hexdigest()


def group_global_id(type_name: str, payload: Any) -> str:
    """Relay global id for a group record that has no id of its own."""
    return to_base64(type_name, payload_digest(payload))
