from __future__ import annotations

import re
from typing import Any, Iterable, List

from ticketing.errors import InvalidArgument

QUEUE_ID_MAX_LENGTH = 50
_QUEUE_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,%d}" % QUEUE_ID_MAX_LENGTH)


def require_queue_id(queue_id: Any) -> str:
    """Engine-level check: any non-empty string is a valid queue id."""
    if not isinstance(queue_id, str) or not queue_id:
        raise InvalidArgument("queue id is required")
    return queue_id


def is_routable_queue_id(queue_id: str) -> bool:
    return _QUEUE_ID_PATTERN.fullmatch(queue_id or "") is not None


def validate_http_queue_id(queue_id: Any) -> str:
    """Stricter shape enforced at the HTTP boundary."""
    queue_id = require_queue_id(queue_id)
    if not is_routable_queue_id(queue_id):
        raise InvalidArgument(
            "Invalid queue ID: use 1-50 letters, digits, underscores or hyphens"
        )
    return queue_id


def require_queue_ids(queue_ids: Iterable[Any]) -> List[str]:
    ids = [require_queue_id(q) for q in queue_ids]
    if not ids:
        raise InvalidArgument("at least one queue id is required")
    return ids
