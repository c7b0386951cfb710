"""Shared fixtures: a fake frequency platform behind httpx.MockTransport."""

import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from endercom import Agent, AgentOptions


BASE_URL = "https://platform.test"
FREQUENCY_ID = "freq-1"
API_KEY = "secret-key"
AGENT_ID = "agent-1"

FREQ_BASE = f"{BASE_URL}/api/{FREQUENCY_ID}"
POLL_URL = f"{FREQ_BASE}/messages/poll"
RESPOND_URL = f"{FREQ_BASE}/messages/respond"
SEND_URL = f"{FREQ_BASE}/messages/send"
CALLBACK_URL = "https://callback.test/reply/abc"

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


def talk_url(target: str) -> str:
    return f"{FREQ_BASE}/agents/{target}/talk"


def poll_payload(*messages: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": True, "data": {"messages": list(messages)}}


def raw_message(index: int, **overrides: Any) -> Dict[str, Any]:
    message = {
        "id": f"msg-{index}",
        "content": f"content {index}",
        "request_id": f"req-{index}",
        "created_at": "2024-01-01 00:00:00 UTC",
    }
    message.update(overrides)
    return message


class FakePlatform:
    """Records every request and answers from a (method, url) route table."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Route] = {}

    def on(self, method: str, url: str, route: Route) -> None:
        self.routes[(method, url)] = route

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return route

    def requests_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]

    @staticmethod
    def body(request: httpx.Request) -> Dict[str, Any]:
        return json.loads(request.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def options() -> AgentOptions:
    return AgentOptions(
        frequency_api_key=API_KEY,
        frequency_id=FREQUENCY_ID,
        agent_id=AGENT_ID,
        base_url=BASE_URL,
    )


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def agent(options: AgentOptions, platform: FakePlatform) -> Agent:
    return Agent(options, transport=platform.transport)
