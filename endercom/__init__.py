"""
Endercom SDK

Connect agents to the Endercom communication platform, either by polling a
frequency for messages or by serving a small authenticated HTTP surface.

    from endercom import Agent, AgentOptions

    agent = Agent(AgentOptions.from_env())
    agent.set_message_handler(lambda message: f"Hello: {message.content}")
    agent.run()
"""

__version__ = "1.0.0"

from endercom.agent import (
    Agent,
    PollState,
    create_agent,
    create_server_agent,
    default_message_handler,
)
from endercom.client import (
    AsyncFrequencyClient,
    FrequencyClient,
)
from endercom.config import (
    AgentOptions,
    ServerOptions,
)
from endercom.types import (
    Message,
    MessageHandler,
    A2ARequest,
    A2AResponse,
    HealthResponse,
)
from endercom.exceptions import (
    EndercomError,
    ConfigurationError,
    AuthenticationError,
    ValidationError,
    HandlerError,
    ServerUnavailableError,
)

__all__ = [
    # Version
    "__version__",
    # Agent
    "Agent",
    "PollState",
    "create_agent",
    "create_server_agent",
    "default_message_handler",
    # Client
    "AsyncFrequencyClient",
    "FrequencyClient",
    # Config
    "AgentOptions",
    "ServerOptions",
    # Types
    "Message",
    "MessageHandler",
    "A2ARequest",
    "A2AResponse",
    "HealthResponse",
    # Exceptions
    "EndercomError",
    "ConfigurationError",
    "AuthenticationError",
    "ValidationError",
    "HandlerError",
    "ServerUnavailableError",
]
