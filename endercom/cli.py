"""Command line entry point.

Agent identity is read from FREQUENCY_API_KEY, FREQUENCY_ID and AGENT_ID.

    endercom poll --interval 2
    endercom serve --port 8000
    endercom send "build finished" --to reporter
    endercom talk planner "what's next?"
"""

import argparse
import logging
import sys
from typing import List, Optional

from endercom.agent import Agent
from endercom.client import FrequencyClient
from endercom.config import (
    AgentOptions,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TALK_TIMEOUT,
    ServerOptions,
)
from endercom.exceptions import ConfigurationError, ServerUnavailableError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="endercom",
        description="Endercom agent command line",
    )
    parser.add_argument("--base-url", default=None, help="Platform URL (default: $ENDERCOM_BASE_URL or https://endercom.io)")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    poll = sub.add_parser("poll", help="Run an echo agent in poll mode")
    poll.add_argument("--interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Poll interval (seconds)")

    serve = sub.add_parser("serve", help="Serve the agent's HTTP endpoints")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--no-heartbeat", action="store_true", help="Disable /health and /heartbeat")
    serve.add_argument("--no-a2a", action="store_true", help="Disable POST /a2a")
    serve.add_argument("--poll-interval", type=float, default=None, help="Also poll the platform (seconds)")

    send = sub.add_parser("send", help="Send a message to the frequency")
    send.add_argument("content")
    send.add_argument("--to", dest="target", default=None, help="Target agent ID")

    talk = sub.add_parser("talk", help="Talk to an agent and print its reply")
    talk.add_argument("target")
    talk.add_argument("content")
    talk.add_argument("--no-wait", action="store_true", help="Do not wait for a reply")
    talk.add_argument("--timeout", type=float, default=DEFAULT_TALK_TIMEOUT, help="Reply timeout (seconds)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        options = AgentOptions.from_env(base_url=args.base_url)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    if args.command == "poll":
        Agent(options).run(poll_interval=args.interval)
        return 0

    if args.command == "serve":
        server_options = ServerOptions(
            host=args.host,
            port=args.port,
            enable_heartbeat=not args.no_heartbeat,
            enable_a2a=not args.no_a2a,
            poll_interval=args.poll_interval,
            log_level=args.log_level.lower(),
        )
        try:
            Agent(options).run_server(server_options)
        except ServerUnavailableError as e:
            logger.error(str(e))
            return 1
        return 0

    with FrequencyClient(options) as client:
        if args.command == "send":
            return 0 if client.send_message(args.content, args.target) else 1

        reply = client.talk_to_agent(
            args.target,
            args.content,
            await_response=not args.no_wait,
            timeout=args.timeout,
        )
    if reply is not None:
        print(reply)
    return 0


if __name__ == "__main__":
    sys.exit(main())
