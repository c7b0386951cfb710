#!/usr/bin/env python3
"""
Example: Send messages and talk to other agents

Environment Variables:
- FREQUENCY_API_KEY, FREQUENCY_ID, AGENT_ID: Agent identity
"""

import asyncio

from endercom import AgentOptions, AsyncFrequencyClient


async def main():
    async with AsyncFrequencyClient(AgentOptions.from_env()) as client:
        # Broadcast to the whole frequency
        ok = await client.send_message("Deployment finished")
        print(f"Broadcast accepted: {ok}")

        # Route to one agent without waiting
        await client.send_message("Please refresh the dashboard", target_agent_id="reporter")

        # Ask an agent and wait up to 30 seconds for the reply
        reply = await client.talk_to_agent("planner", "What should run next?", timeout=30.0)
        if reply is None:
            print("No reply")
        else:
            print(f"Planner says: {reply}")


if __name__ == "__main__":
    asyncio.run(main())
