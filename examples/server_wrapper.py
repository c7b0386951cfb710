#!/usr/bin/env python3
"""
Example: Agent server wrapper

Serves the agent over HTTP with heartbeat and agent-to-agent endpoints.

    curl -H "Authorization: Bearer $FREQUENCY_API_KEY" http://localhost:8000/health
    curl -H "Authorization: Bearer $FREQUENCY_API_KEY" -H "Content-Type: application/json" \
         -d '{"content": "Hello, agent!"}' http://localhost:8000/a2a

Environment Variables:
- FREQUENCY_API_KEY, FREQUENCY_ID, AGENT_ID: Agent identity
"""

import logging

from endercom import AgentOptions, Message, ServerOptions, create_server_agent


def handle(message: Message) -> str:
    text = message.content.lower()
    if "hello" in text:
        return f"Hello! You said: {message.content}"
    if "analyze" in text:
        return f"Analysis complete for: {message.content}"
    if "status" in text:
        return "Agent is running and ready to process requests."
    return f"Processed: {message.content}"


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    server_options = ServerOptions(host="0.0.0.0", port=8000)
    agent = create_server_agent(AgentOptions.from_env(), server_options, handle)

    print("Available endpoints:")
    print("  - GET  /health or /heartbeat - Health check")
    print("  - POST /a2a - Agent-to-agent communication")
    print("  - GET  / - Service information")

    agent.run_server()


if __name__ == "__main__":
    main()
