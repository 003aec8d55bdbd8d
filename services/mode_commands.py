# services/mode_commands.py
"""
Mode commands.

Slash commands pin an agent for a user (skipping model-based resolution)
and, for the trip agent, record which stage of the trip the user is in.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class TripStage(str, Enum):
    PLANNING = "planning"
    PRE_TRIP = "pre-trip"
    ACTIVE_TRIP = "active-trip"


@dataclass
class UserPreference:
    agent: Optional[str] = None
    trip_stage: Optional[TripStage] = None


class PreferenceStore:
    def __init__(self):
        self._prefs: Dict[str, UserPreference] = {}

    def get(self, user_id: str) -> UserPreference:
        return self._prefs.get(user_id) or UserPreference()

    def pin(self, user_id: str, agent: str, trip_stage: Optional[TripStage] = None) -> None:
        self._prefs[user_id] = UserPreference(agent=agent, trip_stage=trip_stage)

    def clear(self, user_id: str) -> None:
        self._prefs.pop(user_id, None)


@dataclass(frozen=True)
class ModeCommand:
    agent: Optional[str]
    trip_stage: Optional[TripStage]
    message: str


_MODES_FOOTER = (
    "*Other modes:*\n"
    "• `/tripplanning` → Trip planning\n"
    "• `/ontrip` → Active travel mode\n"
    "• `/budget` → Budget mode\n"
    "• `/auto` → Let me pick the agent\n"
    "• `/agentmode` → Check current mode"
)

PLANNING = ModeCommand(
    agent="trip",
    trip_stage=TripStage.PLANNING,
    message=(
        "📋 *Planning Mode Activated*\n\n"
        "Try: \"plan trip to Paris in March\" or \"suggest destinations for summer\"\n\n"
        + _MODES_FOOTER
    ),
)
TRIP_PLANNING = ModeCommand(
    agent="trip",
    trip_stage=TripStage.PRE_TRIP,
    message=(
        "✈️ *Trip Planning Mode Activated*\n\n"
        "Try: \"search flights from LAX to Tokyo\" or \"find hotels in Paris for 5 nights\"\n\n"
        + _MODES_FOOTER
    ),
)
ACTIVE_TRIP = ModeCommand(
    agent="trip",
    trip_stage=TripStage.ACTIVE_TRIP,
    message=(
        "🧳 *Active Trip Mode*\n\n"
        "Try: \"track booking: hotel confirmation ABC123\" or \"what should I do today?\"\n\n"
        + _MODES_FOOTER
    ),
)
BUDGET = ModeCommand(
    agent="budget",
    trip_stage=None,
    message=(
        "💰 *Budget Mode Activated*\n\n"
        "Try: \"show me my balance\", \"add $50 expense at Starbucks\" or \"analyze my spending\"\n\n"
        + _MODES_FOOTER
    ),
)
AUTO = ModeCommand(
    agent=None,
    trip_stage=None,
    message="🤖 *Auto-detect Mode*\n\nI'll pick the right agent for each message.",
)

COMMANDS: Dict[str, ModeCommand] = {
    "/planning": PLANNING,
    "/trip": TRIP_PLANNING,
    "/tripplanning": TRIP_PLANNING,
    "/travel": TRIP_PLANNING,
    "/ontrip": ACTIVE_TRIP,
    "/traveling": ACTIVE_TRIP,
    "/activetrip": ACTIVE_TRIP,
    "/budget": BUDGET,
    "/budgeting": BUDGET,
    "/auto": AUTO,
}

STATUS_COMMAND = "/agentmode"


def describe_mode(pref: UserPreference) -> str:
    if pref.agent == "trip":
        if pref.trip_stage is TripStage.ACTIVE_TRIP:
            name = "🧳 Active Trip (Traveling)"
        elif pref.trip_stage is TripStage.PRE_TRIP:
            name = "✈️ Trip Planning (Pre-Trip)"
        else:
            name = "📋 General Planning"
    elif pref.agent == "budget":
        name = "💰 Budget Mode"
    elif pref.agent:
        name = f"📌 {pref.agent}"
    else:
        name = "🤖 Auto-detect"
    return f"*Current Mode*: {name}\n\n" + _MODES_FOOTER


def apply_mode_command(text: str, user_id: str, prefs: PreferenceStore) -> Optional[str]:
    """
    Handle a slash command. Returns the reply, or None when the text is not
    a mode command.
    """
    command = (text or "").strip().lower()

    if command == STATUS_COMMAND:
        return describe_mode(prefs.get(user_id))

    mode = COMMANDS.get(command)
    if mode is None:
        return None

    if mode.agent is None:
        prefs.clear(user_id)
    else:
        prefs.pin(user_id, mode.agent, mode.trip_stage)
    return mode.message
