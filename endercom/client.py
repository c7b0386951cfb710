"""
Frequency Client Module

HTTP plumbing for the frequency platform: polling, responding, sending and
talking. None of these calls raise on network or HTTP failures; they log
and return a sentinel instead.

Example:
    from endercom import AgentOptions
    from endercom.client import AsyncFrequencyClient

    options = AgentOptions.from_env()
    async with AsyncFrequencyClient(options) as client:
        ok = await client.send_message("hello everyone")
        reply = await client.talk_to_agent("planner", "What's next?")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from endercom.config import AgentOptions, DEFAULT_TALK_TIMEOUT
from endercom.types import Message

logger = logging.getLogger(__name__)


class AsyncFrequencyClient:
    """Async client for the per-frequency platform API."""

    def __init__(
        self,
        options: AgentOptions,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            options: Agent identity used for URLs and credentials
            transport: Optional httpx transport (used to fake the platform in tests)
        """
        self.options = options
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.options.timeout),
                headers=self.options.headers,
                transport=self._transport,
            )
        return self._client

    async def __aenter__(self) -> "AsyncFrequencyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self, *, with_agent: bool = True) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.options.frequency_api_key}",
            "Content-Type": "application/json",
        }
        if with_agent:
            headers["X-Agent-Id"] = self.options.agent_id
        return headers

    async def poll_messages(self) -> List[Message]:
        """
        Fetch the pending batch of messages for this agent.

        Returns:
            Messages in the order the platform returned them; an empty list
            on network errors, non-2xx responses or malformed payloads.
        """
        url = f"{self.options.frequency_base}/messages/poll"
        try:
            response = await self.client.get(url, headers=self._auth_headers())
        except httpx.HTTPError as e:
            logger.error(f"Network error while polling: {e}")
            return []

        if not response.is_success:
            logger.error(f"Polling error: {response.status_code}")
            return []

        try:
            data = response.json()
        except ValueError:
            logger.error("Polling error: response body is not valid JSON")
            return []

        raw_messages = _extract_messages(data)
        if raw_messages is None:
            logger.warning(f"Polling returned an unexpected payload: {data!r}")
            return []

        messages = []
        for raw in raw_messages:
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed message entry: {raw!r}")
                continue
            metadata = raw.get("metadata")
            if metadata is not None and not isinstance(metadata, dict):
                logger.warning(
                    f"Ignoring non-object metadata on message {raw.get('id')}: {metadata!r}"
                )
            messages.append(Message.from_dict(raw))
        return messages

    async def respond(self, request_id: str, content: str) -> bool:
        """Queue a response on the platform for ``request_id``."""
        url = f"{self.options.frequency_base}/messages/respond"
        payload = {"request_id": request_id, "content": content}
        try:
            response = await self.client.post(
                url, json=payload, headers=self._auth_headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error sending response: {e}")
            return False

        if not response.is_success:
            logger.error(f"Response error: {response.status_code}")
            return False
        return True

    async def respond_via_url(
        self,
        response_url: str,
        request_id: str,
        content: str,
    ) -> bool:
        """
        POST a response directly to a callback URL.

        The URL is a capability handed out by the platform, so no
        credentials are attached.
        """
        payload = {"request_id": request_id, "content": content}
        try:
            response = await self.client.post(
                response_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL, TypeError) as e:
            logger.error(f"Network error sending HTTP response: {e}")
            return False

        if not response.is_success:
            logger.error(f"HTTP response error: {response.status_code}")
            return False
        return True

    async def send_message(
        self,
        content: str,
        target_agent_id: Optional[str] = None,
    ) -> bool:
        """
        Send a message to the frequency, optionally routed to one agent.

        Returns:
            True if the platform accepted the message (HTTP 2xx)
        """
        url = f"{self.options.frequency_base}/messages/send"
        payload: Dict[str, Any] = {"content": content}
        if target_agent_id:
            payload["target_agent"] = target_agent_id

        try:
            response = await self.client.post(
                url, json=payload, headers=self._auth_headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Error sending message: {e}")
            return False

        if not response.is_success:
            logger.error(f"Send error: {response.status_code}")
        return response.is_success

    async def talk_to_agent(
        self,
        target_agent_id: str,
        content: str,
        await_response: bool = True,
        timeout: float = DEFAULT_TALK_TIMEOUT,
    ) -> Optional[str]:
        """
        Send a message to a specific agent through the talk endpoint.

        Args:
            target_agent_id: Agent to talk to
            content: Message content
            await_response: Ask the platform to wait for the agent's reply
            timeout: Seconds the platform should wait; enforced remotely

        Returns:
            The reply content when ``await_response`` is set and the
            platform returned one, otherwise None
        """
        url = f"{self.options.frequency_base}/agents/{target_agent_id}/talk"
        payload = {
            "content": content,
            "await": await_response,
            "timeout": int(timeout * 1000),
        }

        try:
            response = await self.client.post(
                url, json=payload, headers=self._auth_headers(with_agent=False)
            )
        except httpx.HTTPError as e:
            logger.error(f"Error talking to agent: {e}")
            return None

        if not response.is_success:
            logger.error(f"Talk endpoint error: {response.status_code}")
            return None

        if not await_response:
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error("Talk endpoint error: response body is not valid JSON")
            return None

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else data
            logger.error(f"Talk endpoint error: {error}")
            return None

        reply = (data.get("data") or {}).get("response") or {}
        if not isinstance(reply, dict):
            return None
        return reply.get("content")


def _extract_messages(data: Any) -> Optional[List[Any]]:
    """Return the raw message list of a poll payload, or None if malformed."""
    if not isinstance(data, dict) or not data.get("success"):
        return None
    body = data.get("data")
    if not isinstance(body, dict):
        return None
    messages = body.get("messages")
    if not isinstance(messages, list):
        return None
    return messages


class FrequencyClient:
    """
    Synchronous wrapper around AsyncFrequencyClient.

    Example:
        client = FrequencyClient(AgentOptions.from_env())
        client.send_message("deploy finished", target_agent_id="reporter")
        client.close()
    """

    def __init__(
        self,
        options: AgentOptions,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._async_client = AsyncFrequencyClient(options, transport=transport)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        """Get or create the private event loop."""
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _run(self, coro):
        """Run a coroutine synchronously."""
        return self._get_loop().run_until_complete(coro)

    def close(self) -> None:
        """Close the client connection."""
        self._run(self._async_client.close())
        if self._loop and not self._loop.is_closed():
            self._loop.close()

    def __enter__(self) -> "FrequencyClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def poll_messages(self) -> List[Message]:
        """Fetch pending messages (sync version)."""
        return self._run(self._async_client.poll_messages())

    def send_message(self, content: str, target_agent_id: Optional[str] = None) -> bool:
        """Send a message (sync version)."""
        return self._run(self._async_client.send_message(content, target_agent_id))

    def talk_to_agent(
        self,
        target_agent_id: str,
        content: str,
        await_response: bool = True,
        timeout: float = DEFAULT_TALK_TIMEOUT,
    ) -> Optional[str]:
        """Talk to an agent (sync version)."""
        return self._run(
            self._async_client.talk_to_agent(
                target_agent_id, content, await_response, timeout
            )
        )
