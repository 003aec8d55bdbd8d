# FILE: services/orchestrator.py
"""
Orchestrator

Composes intent resolution, context continuity, the context-switch guard,
agent routing and the approval gate into one request/response turn.

Every turn yields exactly one response; nothing escapes to the transport.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from core.context import ConversationContext, PendingConfirmation
from core.intent import Intent
from executors.budget import BudgetExecutor
from executors.trip import TripExecutor
from models.agent_io import AgentRequest, ExecutionContext
from models.api import OrchestratorResponse
from services import approval_gate
from services.agent_router import AgentRouter
from services.context_store import ContextStore
from services.extraction_cache import ExtractionCache
from services.context_switch_guard import describe_switch, display_name, should_confirm_switch
from services.intent_resolver import IntentResolver, resolution_hints
from services.keyword_actions import guess_action
from services.mode_commands import PreferenceStore, apply_mode_command
from services.pending_confirmations import (
    ConfirmationReply,
    PendingConfirmationStore,
    classify_reply,
)
from services.user_locks import UserTurnLocks
from services.utils import Clock, utc_now

logger = logging.getLogger("orchestrator")

SYSTEM_AGENT = "system"
PROTECTED_CONTEXT_KEYS = ("user_id", "approval_required")


class Orchestrator:
    def __init__(
        self,
        router: AgentRouter,
        resolver: IntentResolver,
        contexts: ContextStore,
        pending: Optional[PendingConfirmationStore] = None,
        preferences: Optional[PreferenceStore] = None,
        locks: Optional[UserTurnLocks] = None,
        clock: Clock = utc_now,
    ):
        self.router = router
        self.resolver = resolver
        self.contexts = contexts
        self.pending = pending or PendingConfirmationStore(clock=clock)
        self.preferences = preferences or PreferenceStore()
        self.locks = locks or UserTurnLocks()
        self.clock = clock

    async def handle_user_request(self, user_id: str, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Single entry point for the chat transport.
        `request` carries `message` and an optional `context` mapping.
        """
        message = (request.get("message") or "").strip()
        extra = dict(request.get("context") or {})

        async with self.locks.turn(user_id):
            try:
                logger.info(f"[REQUEST_START] user_id={user_id}, text_length={len(message)}")
                response = await self._handle_turn(user_id, message, extra)
            except Exception as e:
                logger.exception(f"[ERROR] user_id={user_id}, exception={e}")
                response = OrchestratorResponse(
                    message=f"❌ Error processing request: {e}\n\nPlease try again.",
                    agent=SYSTEM_AGENT,
                    handled=False,
                    error=str(e),
                )
        return response.model_dump()

    # -----------------------------
    # Turn protocol
    # -----------------------------
    async def _handle_turn(self, user_id: str, message: str, extra: Dict[str, Any]) -> OrchestratorResponse:
        # Mode commands
        reply = apply_mode_command(message, user_id, self.preferences)
        if reply is not None:
            self.pending.pop(user_id)
            logger.info(f"[MODE] user_id={user_id}, command={message}")
            return OrchestratorResponse(message=reply, agent=SYSTEM_AGENT)

        # Pending confirmation from a previous turn
        pending = self.pending.pop(user_id)
        if pending is not None:
            answer = classify_reply(message)
            if answer is ConfirmationReply.YES:
                logger.info(f"[CONFIRMED_SWITCH] user_id={user_id}, agent={pending.intent.agent}")
                return await self._execute(user_id, pending.intent, pending.original_message, extra)
            if answer is ConfirmationReply.NO:
                logger.info(f"[DECLINED_SWITCH] user_id={user_id}, staying={pending.previous_agent}")
                return OrchestratorResponse(
                    message=(
                        f"👍 Staying with {display_name(pending.previous_agent)}. "
                        "Could you rephrase what you need?"
                    ),
                    agent=pending.previous_agent,
                )
            logger.info(f"[PENDING_DISCARDED] user_id={user_id}")

        prior = self.contexts.get(user_id)
        intent = await self._resolve(user_id, message, prior, extra)

        logger.info(
            f"[INTENT] user_id={user_id}, agent={intent.agent}, action={intent.action}, "
            f"confidence={intent.confidence}"
        )

        now = self.clock()
        if should_confirm_switch(intent, prior, now, freshness=self.contexts.freshness):
            logger.info(
                f"[CONTEXT_SWITCH] user_id={user_id}, {prior.agent} -> {intent.agent} "
                f"(confidence: {intent.confidence})"
            )
            description = describe_switch(intent, prior, message)
            self.pending.put(
                user_id,
                PendingConfirmation(
                    intent=intent,
                    original_message=message,
                    previous_agent=prior.agent,
                    description=description,
                    created_at=now,
                ),
            )
            return OrchestratorResponse(
                message=description,
                agent=SYSTEM_AGENT,
                requiresConfirmation=True,
                data={"pendingIntent": intent.model_dump()},
            )

        return await self._execute(user_id, intent, message, extra)

    async def _resolve(
        self,
        user_id: str,
        message: str,
        prior: Optional[ConversationContext],
        extra: Dict[str, Any],
    ) -> Intent:
        pinned = self.preferences.get(user_id).agent
        if pinned and self.router.has(pinned):
            logger.info(f"[PINNED_AGENT] user_id={user_id}, agent={pinned}")
            return Intent(
                agent=pinned,
                action=guess_action(message, pinned),
                confidence=1.0,
                params={},
            )
        return await self.resolver.resolve(message, prior, resolution_hints(extra))

    async def _execute(
        self,
        user_id: str,
        intent: Intent,
        message: str,
        extra: Dict[str, Any],
    ) -> OrchestratorResponse:
        agent = self.router.select(intent.agent)
        decision = approval_gate.evaluate(intent.action, intent.params)

        trip_stage = self.preferences.get(user_id).trip_stage
        context = ExecutionContext(
            user_id=user_id,
            approval_required=decision.required,
            trip_context=trip_stage.value if trip_stage else None,
            **{k: v for k, v in extra.items() if k not in PROTECTED_CONTEXT_KEYS and k != "trip_context"},
        )
        agent_request = AgentRequest(
            action=intent.action,
            params=intent.params,
            original_message=message,
        )

        try:
            result = await agent.handle(agent_request, context)
        finally:
            # Recorded even when the handler fails so follow-ups still have context.
            self.contexts.set(
                user_id,
                ConversationContext(
                    agent=agent.name,
                    action=intent.action,
                    params=dict(intent.params),
                    timestamp=self.clock(),
                ),
            )

        return OrchestratorResponse(
            message=result.message or "Request processed",
            agent=agent.name,
            requiresApproval=decision.required,
            data=result.data,
        )

    def status(self) -> Dict[str, Any]:
        return {"ready": True, "agents": self.router.status()}


def build_orchestrator(
    complete_prompt,
    ledger,
    travel=None,
    document_parser=None,
    clock: Clock = utc_now,
) -> Orchestrator:
    """Wire stores, agents and resolver once per process."""
    contexts = ContextStore(clock=clock)
    router = AgentRouter()
    router.register(
        "budget",
        BudgetExecutor(
            ledger=ledger,
            complete_prompt=complete_prompt,
            extraction_cache=ExtractionCache(clock=clock),
            document_parser=document_parser,
        ),
    )
    router.register("trip", TripExecutor(complete_prompt=complete_prompt, travel=travel))

    resolver = IntentResolver(
        complete_prompt=complete_prompt,
        capabilities=router.capabilities,
        is_fresh=contexts.is_fresh,
    )
    return Orchestrator(
        router=router,
        resolver=resolver,
        contexts=contexts,
        pending=PendingConfirmationStore(clock=clock),
        clock=clock,
    )
