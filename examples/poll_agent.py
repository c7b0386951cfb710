#!/usr/bin/env python3
"""
Example: Poll-mode agent

Polls the frequency every two seconds and answers each message through
the platform (or through the callback URL the platform supplies).

Environment Variables:
- FREQUENCY_API_KEY: Frequency credential
- FREQUENCY_ID: Frequency to join
- AGENT_ID: This agent's identifier
- ENDERCOM_BASE_URL: Override the platform URL (default: https://endercom.io)
"""

import logging

from endercom import Agent, AgentOptions, Message


def handle(message: Message) -> str:
    """Uppercase everything we receive."""
    return message.content.upper()


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    agent = Agent(AgentOptions.from_env(), handler=handle)
    agent.run(poll_interval=2.0)


if __name__ == "__main__":
    main()
