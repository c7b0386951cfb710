"""
Agent Server Module

Exposes an agent over HTTP so that other agents and the platform can reach
it directly instead of waiting for a poll.

Routes (all require ``Authorization: Bearer <frequency_api_key>``):
    GET  /health, /heartbeat  - liveness and uptime
    POST /a2a                 - process one message and answer in-band
    GET  /                    - service descriptor

Example:
    from endercom import Agent, AgentOptions, ServerOptions

    agent = Agent(AgentOptions.from_env(), handler=lambda m: m.content.upper())
    agent.run_server(ServerOptions(port=8000))
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from endercom import __version__
from endercom._internal import format_timestamp, new_a2a_ids
from endercom.auth import verify_frequency_key
from endercom.config import ServerOptions
from endercom.exceptions import AuthenticationError, HandlerError, ValidationError
from endercom.types import A2ARequest, A2AResponse, HealthResponse, Message

if TYPE_CHECKING:
    from endercom.agent import Agent

logger = logging.getLogger(__name__)


def create_agent_app(agent: "Agent", options: Optional[ServerOptions] = None) -> FastAPI:
    """
    Create a FastAPI app serving an agent.

    Args:
        agent: The agent whose handler answers /a2a
        options: Route toggles, accepted API key and optional polling

    Returns:
        FastAPI application
    """
    options = options or ServerOptions()
    expected_key = options.frequency_api_key or agent.options.frequency_api_key
    startup_time = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting agent server for {agent.agent_id}")
        if options.poll_interval is not None:
            agent.start(options.poll_interval)
        yield
        if agent.is_running:
            agent.stop()
        logger.info(f"Shutting down agent server for {agent.agent_id}")

    app = FastAPI(
        title=f"Endercom Agent - {agent.agent_id}",
        version=__version__,
        lifespan=lifespan,
    )

    async def authenticate(authorization: Optional[str] = Header(default=None)) -> str:
        return verify_frequency_key(authorization, expected_key)

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc.reason}")
        return JSONResponse(
            status_code=401,
            content=exc.to_dict(),
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    guarded = [Depends(authenticate)]

    if options.enable_heartbeat:
        async def health_check() -> HealthResponse:
            return HealthResponse(
                status="healthy",
                timestamp=format_timestamp(),
                uptimeSeconds=round(time.monotonic() - startup_time, 2),
            )

        for path in ("/health", "/heartbeat"):
            app.add_api_route(
                path,
                health_check,
                methods=["GET"],
                response_model=HealthResponse,
                dependencies=guarded,
            )

    if options.enable_a2a:
        @app.post("/a2a", response_model=A2AResponse, dependencies=guarded)
        async def a2a(payload: Optional[A2ARequest] = None):
            """Process a message with the agent's handler and return the reply."""
            content = (payload or A2ARequest()).resolved_content()
            if not content:
                raise ValidationError(
                    "Either 'content' or 'message' field is required in the request body",
                    field="content",
                )

            message_id, request_id = new_a2a_ids()
            message = Message(
                id=message_id,
                content=content,
                request_id=request_id,
                created_at=format_timestamp(),
                agent_id=None,
                metadata={},
            )

            try:
                response = await agent.process_message(message)
            except HandlerError as e:
                reason = e.cause if e.cause is not None else e.message
                logger.exception(f"A2A message processing failed: {reason}")
                return JSONResponse(
                    status_code=500,
                    content={"error": f"Message processing failed: {reason}"},
                )

            return A2AResponse(
                success=True,
                response=response,
                timestamp=format_timestamp(),
            )

    @app.get("/", dependencies=guarded)
    async def service_info() -> Dict[str, Any]:
        return {
            "service": f"Endercom Agent - {agent.agent_id}",
            "version": __version__,
            "status": "running",
            "agent_id": agent.agent_id,
            "frequency_id": agent.frequency_id,
            "endpoints": {
                "health": "/health or /heartbeat" if options.enable_heartbeat else "disabled",
                "a2a": "POST /a2a" if options.enable_a2a else "disabled",
            },
            "base_url": agent.options.base_url,
            "authentication": "All endpoints require frequency API key in Authorization header",
        }

    return app


def _log_startup(agent: "Agent", options: ServerOptions) -> None:
    logger.info("Starting Endercom Agent server wrapper")
    logger.info(f"Agent ID: {agent.agent_id}")
    logger.info(f"Frequency ID: {agent.frequency_id}")
    logger.info(f"Listening on http://{options.host}:{options.port}")
    logger.info(
        f"Heartbeat endpoint: {'enabled' if options.enable_heartbeat else 'disabled'}"
    )
    logger.info(f"A2A endpoint: {'enabled' if options.enable_a2a else 'disabled'}")


def serve_agent(agent: "Agent", options: Optional[ServerOptions] = None) -> None:
    """
    Run an agent as an HTTP service.

    Args:
        agent: The agent to serve
        options: Bind address, route toggles and logging level
    """
    options = options or ServerOptions()
    app = create_agent_app(agent, options)
    _log_startup(agent, options)

    uvicorn.run(
        app,
        host=options.host,
        port=options.port,
        log_level=options.log_level,
    )


async def serve_agent_async(agent: "Agent", options: Optional[ServerOptions] = None) -> None:
    """
    Run an agent as an HTTP service (async version).

    Args:
        agent: The agent to serve
        options: Bind address, route toggles and logging level
    """
    options = options or ServerOptions()
    app = create_agent_app(agent, options)
    _log_startup(agent, options)

    config = uvicorn.Config(
        app,
        host=options.host,
        port=options.port,
        log_level=options.log_level,
    )
    server = uvicorn.Server(config)
    await server.serve()
