import asyncio
import sys

from agents.completion_agent import complete_prompt
from API_LAYER.app import default_ledger
from services.orchestrator import build_orchestrator


async def main():
    orchestrator = build_orchestrator(complete_prompt=complete_prompt, ledger=default_ledger())
    user_id = "cli-user"
    print("Concierge bot. Type a message, /agentmode for the current mode, Ctrl-D to quit.")

    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if not text.strip():
            continue
        response = await orchestrator.handle_user_request(user_id, {"message": text})
        print(response["message"])
        if response.get("requiresApproval"):
            print("(approval required)")


if __name__ == "__main__":
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main())
