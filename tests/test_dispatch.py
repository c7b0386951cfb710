"""Tests for the dispatch core: handler invocation and response routing."""

import asyncio
import logging

import httpx
import pytest

from endercom import HandlerError, Message, default_message_handler
from tests.conftest import API_KEY, AGENT_ID, CALLBACK_URL, RESPOND_URL


def make_message(**overrides) -> Message:
    fields = {
        "id": "msg-1",
        "content": "hi",
        "request_id": "req-1",
        "created_at": "2024-01-01 00:00:00 UTC",
    }
    fields.update(overrides)
    return Message(**fields)


class TestHandlerInvocation:

    def test_default_handler_echoes_content(self, caplog):
        with caplog.at_level(logging.INFO, logger="endercom.agent"):
            assert default_message_handler(make_message(content="hi")) == "Echo: hi"
        assert "received: hi" in caplog.text

    @pytest.mark.asyncio
    async def test_default_handler_used_when_none_registered(self, agent):
        assert await agent.process_message(make_message(content="hi")) == "Echo: hi"

    @pytest.mark.asyncio
    async def test_sync_handler_result_returned(self, agent):
        agent.set_message_handler(lambda m: m.content.upper())
        assert await agent.process_message(make_message(content="shout")) == "SHOUT"

    @pytest.mark.asyncio
    async def test_async_handler_result_awaited(self, agent):
        async def handler(message):
            await asyncio.sleep(0)
            return f"later: {message.content}"

        agent.set_message_handler(handler)
        assert await agent.process_message(make_message()) == "later: hi"

    @pytest.mark.asyncio
    async def test_handler_failure_wrapped(self, agent):
        def handler(message):
            raise RuntimeError("boom")

        agent.set_message_handler(handler)
        with pytest.raises(HandlerError) as exc_info:
            await agent.process_message(make_message())
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.message_id == "msg-1"

    @pytest.mark.asyncio
    async def test_non_text_result_rejected(self, agent):
        agent.set_message_handler(lambda m: None)

        with pytest.raises(HandlerError, match="returned NoneType, expected str") as exc_info:
            await agent.process_message(make_message())
        assert exc_info.value.cause is None

    @pytest.mark.asyncio
    async def test_clearing_handler_restores_echo(self, agent):
        agent.set_message_handler(lambda m: "custom")
        agent.set_message_handler(None)
        assert await agent.process_message(make_message()) == "Echo: hi"

    @pytest.mark.asyncio
    async def test_decorator_registers_handler(self, agent):
        @agent.message_handler
        def handler(message):
            return "decorated"

        assert await agent.process_message(make_message()) == "decorated"


class TestResponseRouting:

    @pytest.mark.asyncio
    async def test_queued_response_without_response_url(self, agent, platform):
        platform.on("POST", RESPOND_URL, httpx.Response(200, json={"success": True}))

        await agent.handle_message(make_message())

        assert len(platform.requests) == 1
        request = platform.requests[0]
        assert str(request.url) == RESPOND_URL
        assert platform.body(request) == {"request_id": "req-1", "content": "Echo: hi"}
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert request.headers["X-Agent-Id"] == AGENT_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "metadata, expected_request_id",
        [
            ({"response_url": CALLBACK_URL}, "req-1"),
            ({"response_url": CALLBACK_URL, "request_id": "talk-9"}, "talk-9"),
        ],
    )
    async def test_callback_response_with_response_url(
        self, agent, platform, metadata, expected_request_id
    ):
        platform.on("POST", CALLBACK_URL, httpx.Response(200))

        await agent.handle_message(make_message(metadata=metadata))

        assert platform.requests_to(RESPOND_URL) == []
        assert len(platform.requests) == 1
        request = platform.requests[0]
        assert str(request.url) == CALLBACK_URL
        assert platform.body(request) == {
            "request_id": expected_request_id,
            "content": "Echo: hi",
        }
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_request_id_override_ignored_without_response_url(self, agent, platform):
        platform.on("POST", RESPOND_URL, httpx.Response(200))

        await agent.handle_message(make_message(metadata={"request_id": "other"}))

        assert platform.body(platform.requests[0])["request_id"] == "req-1"

    @pytest.mark.asyncio
    async def test_handler_failure_sends_nothing(self, agent, platform, caplog):
        def handler(message):
            raise ValueError("bad input")

        agent.set_message_handler(handler)

        with caplog.at_level(logging.ERROR, logger="endercom.agent"):
            await agent.handle_message(make_message())

        assert platform.requests == []
        assert "Error handling message msg-1" in caplog.text

    @pytest.mark.asyncio
    async def test_non_2xx_respond_logged_not_raised(self, agent, platform, caplog):
        platform.on("POST", RESPOND_URL, httpx.Response(503))

        with caplog.at_level(logging.ERROR, logger="endercom.client"):
            await agent.handle_message(make_message())

        assert len(platform.requests) == 1
        assert "Response error: 503" in caplog.text

    @pytest.mark.asyncio
    async def test_non_2xx_callback_logged_not_raised(self, agent, platform, caplog):
        platform.on("POST", CALLBACK_URL, httpx.Response(410))

        with caplog.at_level(logging.ERROR, logger="endercom.client"):
            await agent.handle_message(make_message(metadata={"response_url": CALLBACK_URL}))

        assert len(platform.requests) == 1
        assert "HTTP response error: 410" in caplog.text

    @pytest.mark.asyncio
    async def test_network_error_on_callback_not_raised(self, agent, platform):
        platform.on("POST", CALLBACK_URL, httpx.ConnectError("connection refused"))

        await agent.handle_message(make_message(metadata={"response_url": CALLBACK_URL}))

        assert len(platform.requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response_url", [12345, "", ["https://cb.test"], {"url": CALLBACK_URL}])
    async def test_non_text_response_url_falls_back_to_queue(self, agent, platform, response_url):
        platform.on("POST", RESPOND_URL, httpx.Response(200))

        await agent.handle_message(make_message(metadata={"response_url": response_url}))

        assert len(platform.requests) == 1
        request = platform.requests[0]
        assert str(request.url) == RESPOND_URL
        assert platform.body(request) == {"request_id": "req-1", "content": "Echo: hi"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result", [None, 42, {"text": "hi"}])
    async def test_non_text_handler_result_sends_nothing(self, agent, platform, caplog, result):
        agent.set_message_handler(lambda m: result)
        platform.on("POST", RESPOND_URL, httpx.Response(200))

        with caplog.at_level(logging.ERROR, logger="endercom.agent"):
            await agent.handle_message(make_message())

        assert platform.requests == []
        assert "Error handling message msg-1" in caplog.text
