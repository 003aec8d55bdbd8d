import logging
from typing import Awaitable, Callable, Optional

from executors.base import BaseExecutor
from models.agent_io import AgentRequest, AgentResult, ExecutionContext
from services.travel import TravelClient
from services.utils import deep_serialize

logger = logging.getLogger("trip_agent")

CompletePrompt = Callable[[str], Awaitable[str]]

# Actions answered by the travel inventory; everything else is written by the model.
INVENTORY_ACTIONS = {
    "search_flights",
    "book_flight",
    "search_hotels",
    "book_hotel",
    "track_booking",
    "get_directions",
    "check_emails",
    "check_calendar",
}


class TripExecutor(BaseExecutor):
    """
    Executes trip-related intents.
    Inventory lookups and bookings go to the travel client; planning prose
    comes from the completion collaborator.
    """

    name = "trip"
    capabilities = [
        "plan_trip",
        "search_flights",
        "book_flight",
        "search_hotels",
        "book_hotel",
        "create_itinerary",
        "track_booking",
        "get_trip_suggestions",
        "get_directions",
        "check_emails",
        "check_calendar",
    ]

    def __init__(self, complete_prompt: CompletePrompt, travel: Optional[TravelClient] = None):
        self.complete_prompt = complete_prompt
        self.travel = travel

    def status(self) -> dict:
        info = super().status()
        info["travel_inventory"] = self.travel is not None
        return info

    async def handle(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        logger.info(f"[TRIP] user_id={context.user_id}, action={request.action}, stage={context.trip_context}")

        if request.action in INVENTORY_ACTIONS:
            return await self._inventory(request, context)

        if request.action in ("plan_trip", "create_itinerary", "get_trip_suggestions"):
            return await self._plan(request, context)

        return AgentResult(message=f"❌ Unknown trip capability: {request.action}")

    async def _inventory(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        if self.travel is None:
            return AgentResult(message="⚠️ Travel search and booking are not configured right now.")

        if request.action.startswith("book_") and context.approval_required and not context.get("approved"):
            return AgentResult(
                message=(
                    "⚠️ *Booking needs your approval*\n\n"
                    f"Option {request.params.get('option', '?')} will be booked. Reply to confirm."
                )
            )

        params = dict(request.params)
        if request.action == "get_directions" and "from" not in params and context.get("user_location"):
            params["from"] = context.get("user_location")

        result = await self.travel.perform(request.action, params, context.user_id)
        return AgentResult(
            message=result.get("message") or "Done.",
            data=deep_serialize({k: v for k, v in result.items() if k != "message"}),
        )

    async def _plan(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        p = request.params
        if request.action == "get_trip_suggestions":
            task = f"Suggest 3-5 destinations for these interests: {p.get('interests') or request.original_message}."
        elif request.action == "create_itinerary":
            task = (
                f"Create a day-by-day itinerary for {p.get('destination', 'the destination')} "
                f"({p.get('dates') or p.get('days') or 'flexible dates'})."
            )
        else:
            task = (
                "Create a trip plan with an overview, a budget estimate, accommodation ideas, "
                "must-see attractions, local tips, and next steps.\n"
                f"Destination: {p.get('destination', 'Not specified')}\n"
                f"Dates: {p.get('dates', 'Flexible')}\n"
                f"Budget: {p.get('budget', 'Not specified')}\n"
                f"Travelers: {p.get('travelers', '1')}"
            )

        stage = f"\nThe user is currently in the '{context.trip_context}' stage." if context.trip_context else ""
        reply = await self.complete_prompt(f"You are a professional travel planner.{stage}\n\n{task}")
        return AgentResult(message=reply)
