"""
Endercom Agent

Connects a message handler to a frequency. Messages arrive either by
polling the platform or through the inbound HTTP routes (see
``endercom.server``); both paths go through the same handler.

Example:
    from endercom import Agent, AgentOptions

    agent = Agent(AgentOptions.from_env())

    @agent.message_handler
    async def handle(message):
        return f"You said: {message.content}"

    agent.run(poll_interval=2.0)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import signal
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from endercom.client import AsyncFrequencyClient
from endercom.config import (
    AgentOptions,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TALK_TIMEOUT,
    ServerOptions,
)
from endercom.exceptions import HandlerError, ServerUnavailableError
from endercom.types import Message, MessageHandler

logger = logging.getLogger(__name__)


@dataclass
class PollState:
    """State of one polling run, created by ``start()`` and retired by ``stop()``."""
    interval: float
    running: bool = True
    timer: Optional[asyncio.TimerHandle] = None
    cycle: Optional["asyncio.Task[None]"] = None


def default_message_handler(message: Message) -> str:
    """Log the message and echo it back."""
    logger.info(f"received: {message.content}")
    return f"Echo: {message.content}"


class Agent:
    """An agent participating in a frequency."""

    def __init__(
        self,
        options: AgentOptions,
        *,
        handler: Optional[MessageHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the agent.

        Args:
            options: Agent identity on the platform
            handler: Optional message handler; defaults to an echo handler
            transport: Optional httpx transport for platform calls
        """
        self.options = options
        self.client = AsyncFrequencyClient(options, transport=transport)
        self._handler: Optional[MessageHandler] = handler
        self.server_options: Optional[ServerOptions] = None
        self._poll_state: Optional[PollState] = None

    @property
    def agent_id(self) -> str:
        return self.options.agent_id

    @property
    def frequency_id(self) -> str:
        return self.options.frequency_id

    @property
    def is_running(self) -> bool:
        return self._poll_state is not None

    @property
    def poll_state(self) -> Optional[PollState]:
        return self._poll_state

    async def __aenter__(self) -> "Agent":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.is_running:
            self.stop()
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()

    # ------------------------------------------------------------------
    # Handler
    # ------------------------------------------------------------------

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        """
        Replace the message handler.

        Takes effect for every handler invocation from now on, including
        dispatches already in flight that have not called the handler yet.
        Passing None restores the default echo handler.
        """
        self._handler = handler

    def message_handler(self, handler: MessageHandler) -> MessageHandler:
        """Decorator form of ``set_message_handler``."""
        self.set_message_handler(handler)
        return handler

    async def process_message(self, message: Message) -> str:
        """
        Run the current handler on a message.

        Raises:
            HandlerError: If the handler raised, its awaitable failed, or it
                produced something other than text
        """
        handler = self._handler or default_message_handler
        try:
            result: Any = handler(message)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise HandlerError(
                f"Handler failed for message {message.id}: {e}",
                message_id=message.id,
                cause=e,
            ) from e
        if not isinstance(result, str):
            raise HandlerError(
                f"Handler returned {type(result).__name__}, expected str",
                message_id=message.id,
            )
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle_message(self, message: Message) -> None:
        """
        Handle one message and deliver the response.

        Messages carrying ``metadata.response_url`` are answered by POSTing
        to that URL; all others are answered through the platform's respond
        endpoint. Handler failures are logged and nothing is sent. Never
        raises.
        """
        try:
            content = await self.process_message(message)
        except HandlerError:
            logger.exception(f"Error handling message {message.id}")
            return

        response_url = message.response_url
        if response_url:
            await self.client.respond_via_url(
                response_url, message.response_request_id, content
            )
        else:
            await self.client.respond(message.request_id, content)

    # ------------------------------------------------------------------
    # Poll transport
    # ------------------------------------------------------------------

    async def poll_messages(self) -> int:
        """
        Run one poll cycle: fetch pending messages and dispatch each in order.

        Returns:
            Number of messages dispatched
        """
        messages = await self.client.poll_messages()
        for message in messages:
            try:
                await self.handle_message(message)
            except Exception:
                logger.exception(f"Unexpected error dispatching message {message.id}")
        return len(messages)

    def start(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """
        Start polling inside the running event loop.

        The first cycle runs immediately; each following cycle is scheduled
        ``poll_interval`` seconds after the previous one has finished, so
        cycles never overlap. Calling ``start`` while already polling is a
        no-op.

        Raises:
            RuntimeError: If called outside a running event loop; the agent
                stays stopped
        """
        if self._poll_state is not None:
            logger.info("Agent is already running")
            return

        loop = asyncio.get_running_loop()
        state = PollState(interval=poll_interval)
        self._poll_state = state
        logger.info(f"Agent started, polling every {poll_interval}s")
        state.cycle = loop.create_task(self._run_cycle(state))

    def stop(self) -> None:
        """
        Stop polling.

        No new cycle is started after this returns; a cycle already in
        flight still completes its dispatches.
        """
        state = self._poll_state
        if state is None:
            logger.info("Agent is not running")
            return

        state.running = False
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None
        self._poll_state = None
        logger.info("Agent stopped")

    def _launch_cycle(self, state: PollState) -> None:
        state.timer = None
        if not state.running:
            return
        state.cycle = asyncio.get_running_loop().create_task(self._run_cycle(state))

    async def _run_cycle(self, state: PollState) -> None:
        try:
            await self.poll_messages()
        except Exception:
            logger.exception("Unexpected error in poll cycle")
        finally:
            if state.running:
                state.timer = asyncio.get_running_loop().call_later(
                    state.interval, self._launch_cycle, state
                )

    def run(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """
        Poll until interrupted, then exit the process.

        Blocks the calling thread. Ctrl+C stops polling and terminates the
        process with status 0.
        """
        logger.info("Press Ctrl+C to stop")
        try:
            asyncio.run(self._run_until_interrupted(poll_interval))
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
            if self.is_running:
                self.stop()
        raise SystemExit(0)

    async def _run_until_interrupted(self, poll_interval: float) -> None:
        interrupted = asyncio.Event()
        loop = asyncio.get_running_loop()

        def on_interrupt() -> None:
            logger.info("Received interrupt signal")
            self.stop()
            interrupted.set()

        try:
            loop.add_signal_handler(signal.SIGINT, on_interrupt)
        except NotImplementedError:
            # Windows event loops: KeyboardInterrupt is handled by run()
            pass

        self.start(poll_interval)
        try:
            await interrupted.wait()
        finally:
            if self.is_running:
                self.stop()
            await self.close()

    # ------------------------------------------------------------------
    # Outbound senders
    # ------------------------------------------------------------------

    async def send_message(
        self,
        content: str,
        target_agent_id: Optional[str] = None,
    ) -> bool:
        """Send a message to the frequency; True on HTTP 2xx, never raises."""
        return await self.client.send_message(content, target_agent_id)

    async def talk_to_agent(
        self,
        target_agent_id: str,
        content: str,
        await_response: bool = True,
        timeout: float = DEFAULT_TALK_TIMEOUT,
    ) -> Optional[str]:
        """Talk to another agent; returns its reply or None, never raises."""
        return await self.client.talk_to_agent(
            target_agent_id, content, await_response, timeout
        )

    # ------------------------------------------------------------------
    # Inbound HTTP transport
    # ------------------------------------------------------------------

    def create_server_wrapper(self, server_options: Optional[ServerOptions] = None) -> Any:
        """
        Build the FastAPI app exposing /health, /heartbeat, /a2a and /.

        Raises:
            ServerUnavailableError: If FastAPI is not installed
        """
        try:
            from endercom.server import create_agent_app
        except ImportError as e:
            raise ServerUnavailableError() from e
        return create_agent_app(self, server_options or self.server_options or ServerOptions())

    def run_server(self, server_options: Optional[ServerOptions] = None) -> None:
        """Serve the inbound HTTP routes with uvicorn (blocking)."""
        try:
            from endercom.server import serve_agent
        except ImportError as e:
            raise ServerUnavailableError() from e
        serve_agent(self, server_options or self.server_options or ServerOptions())

    async def serve(self, server_options: Optional[ServerOptions] = None) -> None:
        """Serve the inbound HTTP routes with uvicorn (async version)."""
        try:
            from endercom.server import serve_agent_async
        except ImportError as e:
            raise ServerUnavailableError() from e
        await serve_agent_async(self, server_options or self.server_options or ServerOptions())

    def __repr__(self) -> str:
        return f"Agent(agent_id={self.agent_id}, frequency_id={self.frequency_id})"


def create_agent(options: AgentOptions) -> Agent:
    """Create a new agent."""
    return Agent(options)


def create_server_agent(
    options: AgentOptions,
    server_options: Optional[ServerOptions] = None,
    message_handler: Optional[MessageHandler] = None,
) -> Agent:
    """
    Create an agent meant to be run with ``run_server``.

    ``server_options`` become the defaults for ``create_server_wrapper``,
    ``run_server`` and ``serve``.
    """
    agent = Agent(options, handler=message_handler)
    agent.server_options = server_options
    return agent
