"""Agent and server configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from endercom.exceptions import ConfigurationError


DEFAULT_BASE_URL = "https://endercom.io"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_TALK_TIMEOUT = 60.0


def _get_default_base_url() -> str:
    """Get default platform URL from ENDERCOM_BASE_URL environment variable."""
    url = os.environ.get("ENDERCOM_BASE_URL")
    if url:
        return url.rstrip("/")
    return DEFAULT_BASE_URL


@dataclass
class AgentOptions:
    """Static identity of an agent on a frequency.

    Args:
        frequency_api_key: Bearer credential for the frequency
        frequency_id: Frequency the agent belongs to
        agent_id: This agent's identifier within the frequency
        base_url: Platform root URL
        timeout: Local HTTP timeout in seconds; ``None`` leaves calls unbounded
        headers: Extra headers sent with every platform call
    """
    frequency_api_key: str
    frequency_id: str
    agent_id: str
    base_url: Optional[str] = None
    timeout: Optional[float] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("frequency_api_key", "frequency_id", "agent_id"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} is required", setting=name)
        self.base_url = (self.base_url or _get_default_base_url()).rstrip("/")

    @property
    def frequency_base(self) -> str:
        """Root of the per-frequency API, e.g. ``https://endercom.io/api/freq``."""
        return f"{self.base_url}/api/{self.frequency_id}"

    @classmethod
    def from_env(cls, base_url: Optional[str] = None) -> "AgentOptions":
        """Build options from FREQUENCY_API_KEY, FREQUENCY_ID and AGENT_ID."""
        values = {}
        for setting, env_var in (
            ("frequency_api_key", "FREQUENCY_API_KEY"),
            ("frequency_id", "FREQUENCY_ID"),
            ("agent_id", "AGENT_ID"),
        ):
            value = os.environ.get(env_var)
            if not value:
                raise ConfigurationError(
                    f"Environment variable {env_var} is not set",
                    setting=setting,
                )
            values[setting] = value
        return cls(base_url=base_url, **values)


@dataclass
class ServerOptions:
    """Options for the inbound HTTP transport.

    ``frequency_api_key`` overrides the key accepted by the inbound routes;
    it defaults to the agent's own key. When ``poll_interval`` is set the
    server also polls the platform for as long as it is running.
    """
    host: str = "0.0.0.0"
    port: int = 8000
    enable_heartbeat: bool = True
    enable_a2a: bool = True
    frequency_api_key: Optional[str] = None
    poll_interval: Optional[float] = None
    log_level: str = "info"
