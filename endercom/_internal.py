"""
Internal helpers shared by the transports.

Not part of the public API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple
from uuid import uuid4


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a UTC timestamp as ``YYYY-MM-DD HH:MM:SS UTC``."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def new_a2a_ids() -> Tuple[str, str]:
    """Return a fresh ``(message_id, request_id)`` pair for an inbound A2A call."""
    token = uuid4().hex
    return f"a2a_{token}", f"a2a_req_{token}"
