"""
SDK Type Definitions

Messages exchanged with the frequency platform and the request/response
shapes of the inbound HTTP routes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Union,
)

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Message:
    """A message delivered to this agent.

    ``request_id`` correlates the response with the originating request.
    When ``metadata`` carries a ``response_url`` the response must be posted
    to that URL instead of the platform's respond endpoint; a
    ``metadata["request_id"]`` then overrides the correlation id.
    """
    id: str
    content: str
    request_id: str
    created_at: str
    agent_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        """Create a Message from a raw platform entry.

        A ``metadata`` value that is not a mapping is dropped.
        """
        metadata = data.get("metadata")
        return cls(
            id=data.get("id", ""),
            content=data.get("content", ""),
            request_id=data.get("request_id", ""),
            created_at=data.get("created_at", ""),
            agent_id=data.get("agent_id"),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )

    @property
    def response_url(self) -> Optional[str]:
        """Callback URL the response must be delivered to, if any."""
        url = self.metadata.get("response_url")
        if isinstance(url, str) and url:
            return url
        return None

    @property
    def response_request_id(self) -> str:
        """Correlation id to use when answering this message."""
        return self.metadata.get("request_id") or self.request_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "request_id": self.request_id,
            "created_at": self.created_at,
            "agent_id": self.agent_id,
            "metadata": dict(self.metadata),
        }


# A handler receives a Message and returns the response text, either
# directly or as an awaitable.
MessageHandler = Callable[[Message], Union[str, Awaitable[str]]]


# ============================================================================
# Inbound HTTP shapes
# ============================================================================

class A2ARequest(BaseModel):
    """Body of ``POST /a2a``. ``content`` takes precedence over ``message``."""

    content: Optional[str] = None
    message: Optional[str] = None

    def resolved_content(self) -> Optional[str]:
        """Return the first non-empty of ``content`` and ``message``."""
        return self.content or self.message or None


class A2AResponse(BaseModel):
    success: bool = True
    response: str
    timestamp: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str
    uptimeSeconds: float = Field(default=0.0, ge=0)
