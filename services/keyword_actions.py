# services/keyword_actions.py
"""
Keyword action rules.

Used when the user pinned an agent with a mode command: instead of asking
the model, the action is guessed from keywords. Rules are evaluated in
order and the first match wins; each agent has a default action.

Keywords match whole words ("add" does not match "address"). A keyword
ending in "*" is a stem and matches any word starting with it
("flight*" matches "flights").
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple


def _keyword_pattern(keyword: str) -> str:
    if keyword.endswith("*"):
        return r"\b" + re.escape(keyword[:-1])
    return r"\b" + re.escape(keyword) + r"\b"


@dataclass(frozen=True)
class KeywordRule:
    action: str
    keywords: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(re.search(_keyword_pattern(keyword), text) for keyword in self.keywords)


TRIP_RULES: List[KeywordRule] = [
    KeywordRule("plan_trip", ("plan*",)),
    KeywordRule("get_trip_suggestions", ("suggest*", "recommend*", "ideas")),
    KeywordRule("search_flights", ("flight*",)),
    KeywordRule("search_hotels", ("hotel*", "accommodation*", "stay")),
    KeywordRule("create_itinerary", ("itinerar*", "schedule", "day by day")),
    KeywordRule("track_booking", ("track*", "booking*", "confirmation")),
]

BUDGET_RULES: List[KeywordRule] = [
    KeywordRule("view_balance", ("balance*", "how much")),
    KeywordRule("import_statement", ("statement*", "import*")),
    KeywordRule("commit_statement", ("commit", "save them", "upload them")),
    KeywordRule("create_transaction", ("add", "create", "expense*")),
    KeywordRule("categorize_transactions", ("categoriz*", "category")),
    KeywordRule("view_transactions", ("transaction*", "recent", "show")),
    KeywordRule("analyze_spending", ("analyz*", "spending", "breakdown")),
]

AGENT_RULES: Dict[str, Tuple[List[KeywordRule], str]] = {
    "trip": (TRIP_RULES, "plan_trip"),
    "budget": (BUDGET_RULES, "general_query"),
}

UNKNOWN_ACTION = "unknown"


def guess_action(message: str, agent_name: str) -> str:
    rules, default = AGENT_RULES.get(agent_name, ([], UNKNOWN_ACTION))
    text = (message or "").lower()
    for rule in rules:
        if rule.matches(text):
            return rule.action
    return default
