# services/approval_gate.py

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from configurations.config import APPROVAL_THRESHOLD
from core.amount import to_major_units

logger = logging.getLogger("approval_gate")

READ_ONLY_ACTIONS = frozenset({"view_balance", "view_transactions", "analyze_spending"})
THRESHOLD = Decimal(APPROVAL_THRESHOLD)


# ---------------------------------------------------------------------
# Decision Model
# ---------------------------------------------------------------------
class ApprovalRule(str, Enum):
    READ_ONLY = "read_only"
    CATEGORIZATION = "categorization"
    TRANSACTION_AMOUNT = "transaction_amount"
    BOOKING = "booking"
    CALENDAR_INVITEES = "calendar_invitees"
    DEFAULT = "default"


@dataclass(frozen=True)
class ApprovalDecision:
    required: bool
    rule: ApprovalRule
    amount: Optional[Decimal] = None


# ---------------------------------------------------------------------
# Decision Matrix (PURE, DETERMINISTIC)
# ---------------------------------------------------------------------
def evaluate(action: str, params: Optional[Mapping[str, Any]] = None) -> ApprovalDecision:
    """
    Decides whether an action may run autonomously.

    Rules, first match wins:
    1. read-only actions              -> autonomous
    2. categorize_transactions        -> autonomous
    3. create_transaction             -> approval iff |amount| >= THRESHOLD
    4. trip_* / book_*                -> approval
    5. calendar_* with invitees       -> approval
    6. anything else                  -> autonomous

    Amounts are compared in major units; a milliunit amount must say so
    with params["amount_unit"] = "milliunits".
    """
    params = params or {}
    action = action or ""

    if action in READ_ONLY_ACTIONS:
        return ApprovalDecision(required=False, rule=ApprovalRule.READ_ONLY)

    if action == "categorize_transactions":
        return ApprovalDecision(required=False, rule=ApprovalRule.CATEGORIZATION)

    if action == "create_transaction":
        amount = abs(to_major_units(params.get("amount", 0), params.get("amount_unit")))
        required = amount >= THRESHOLD
        if required:
            logger.info(f"[APPROVAL] transaction amount {amount} >= {THRESHOLD}")
        return ApprovalDecision(
            required=required,
            rule=ApprovalRule.TRANSACTION_AMOUNT,
            amount=amount,
        )

    if action.startswith("trip_") or action.startswith("book_"):
        return ApprovalDecision(required=True, rule=ApprovalRule.BOOKING)

    if action.startswith("calendar_") and params.get("invitees"):
        return ApprovalDecision(required=True, rule=ApprovalRule.CALENDAR_INVITEES)

    return ApprovalDecision(required=False, rule=ApprovalRule.DEFAULT)


def needs_approval(action: str, params: Optional[Mapping[str, Any]] = None) -> bool:
    return evaluate(action, params).required
