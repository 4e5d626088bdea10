"""
Base agent contract — the monitor → evaluate → act cycle shared by every domain.

States:
  UNINITIALIZED → READY, then per cycle CLEAR | ATTENTION_NEEDED | ACTION_IN_PROGRESS

Behavioral Contract:
- initialize() is idempotent; failures leave the agent ready, degraded and clear.
- monitor() refreshes from collaborators, degrading to last-known data on failure.
- evaluate() replaces the last-evaluated working set, sorted by priority.
- act() writes its trace BEFORE performing the side effect and never raises
  for side-effect failures. An action executes at most once.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from hayat_kernel.collaborators.dispatch import CommandDispatcher, fetch_records
from hayat_kernel.collaborators.interfaces import (
    CommandGateway,
    FactFeed,
    FamilyStructureProvider,
    SubscribableFeed,
    Unsubscribe,
)
from hayat_kernel.errors import ActionNotFound, CollaboratorUnavailable, LedgerNotBound
from hayat_kernel.models.action import (
    ActionStatus,
    ActionType,
    AgentAction,
    ObligationRef,
    UrgencyTier,
)
from hayat_kernel.models.config import AgentConfig
from hayat_kernel.models.family import FamilyMember
from hayat_kernel.models.obligation import EscalationLevel, ObligationRecord
from hayat_kernel.models.trace import TraceEntry
from hayat_kernel.models.widget import (
    AgentContext,
    AgentLifecycle,
    AgentStatus,
    AgentWidgetState,
)
from hayat_kernel.obligations.store import ObligationStore
from hayat_kernel.scoring.risk import days_until, hours_until, prioritize, urgency_for_priority
from hayat_kernel.trace.ledger import TraceLedger, render_explanation

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation available."


class BaseAgent(ABC):
    """Shared agent lifecycle. Subclasses supply the domain."""

    id: str = ""
    name: str = ""
    description: str = ""

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or AgentConfig()
        self._clock = clock or datetime.utcnow
        self._ledger: Optional[TraceLedger] = None
        self.context: Optional[AgentContext] = None

        self.lifecycle = AgentLifecycle.UNINITIALIZED
        self.last_status = AgentStatus.CLEAR
        self.degraded = False

        self._last_actions: Dict[str, AgentAction] = {}
        self._monitor_lock = asyncio.Lock()
        self._acts_in_flight = 0

    # --- Wiring ---

    def now(self) -> datetime:
        return self._clock()

    def bind_ledger(self, ledger: TraceLedger) -> None:
        """Attach the shared trace ledger. Done by the orchestrator at registration."""
        self._ledger = ledger

    @property
    def ledger(self) -> TraceLedger:
        if self._ledger is None:
            raise LedgerNotBound(f"Agent {self.id} has no trace ledger attached")
        return self._ledger

    def set_context(self, context: AgentContext) -> None:
        self.context = context

    @property
    def acting_user_id(self) -> str:
        if self.context is not None:
            return self.context.current_user_id
        return "system"

    @property
    def last_actions(self) -> List[AgentAction]:
        return list(self._last_actions.values())

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Load initial state. Safe to call more than once."""
        if self.lifecycle == AgentLifecycle.READY:
            return
        try:
            await self._load()
        except Exception as e:
            logger.warning("Agent %s failed to initialize, running degraded: %s", self.id, e)
            self.degraded = True
            self.last_status = AgentStatus.CLEAR
        self.lifecycle = AgentLifecycle.READY
        logger.info("Agent %s ready", self.id)

    async def monitor(self) -> AgentStatus:
        """Refresh from collaborators and classify the coarse status."""
        async with self._monitor_lock:
            try:
                await self._refresh()
                self.degraded = False
            except CollaboratorUnavailable as e:
                logger.warning("Agent %s using last-known data: %s", self.id, e)
                self.degraded = True
            status = self._classify()

        if self._acts_in_flight:
            status = AgentStatus.ACTION_IN_PROGRESS
        self.last_status = status
        return status

    async def evaluate(self) -> List[AgentAction]:
        """Build fresh actions, highest priority first, and remember them."""
        actions = prioritize(self._build_actions(), key=lambda a: a.priority)
        self._last_actions = {a.id: a for a in actions}
        return actions

    async def act(self, action_id: str) -> bool:
        """
        Execute one action from the last evaluation.

        Returns True once the action is completed. A second call for the same
        action never repeats the trace or the side effect.
        """
        action = self._last_actions.get(action_id)
        if action is None:
            raise ActionNotFound(self.id, action_id)

        # Check and transition happen with no await in between
        if action.status != ActionStatus.PENDING:
            logger.info(
                "Agent %s: action %s already %s, not executing again",
                self.id, action_id, action.status.value,
            )
            return action.status == ActionStatus.COMPLETED

        # An action that cannot be explained is never traced or performed
        if not action.reason.strip():
            logger.warning("Agent %s: action %s has no reason, not executing", self.id, action_id)
            return False

        self._record(
            action.type.value,
            action.reason,
            self._trace_context(action),
            action_id=action.id,
        )
        action.transition(ActionStatus.IN_PROGRESS)

        self._acts_in_flight += 1
        try:
            success = await self._perform(action)
        except Exception as e:
            logger.warning("Agent %s: action %s failed: %s", self.id, action_id, e)
            success = False
        finally:
            self._acts_in_flight -= 1

        action.transition(ActionStatus.COMPLETED if success else ActionStatus.FAILED)
        logger.info("Agent %s: action %s %s", self.id, action_id, action.status.value)
        return success

    async def explain(self, action_id: str) -> str:
        """Why an action was proposed or taken."""
        trace = await self.get_trace(action_id)
        if trace is not None:
            return render_explanation(trace)

        action = self._last_actions.get(action_id)
        if action is None:
            raise ActionNotFound(self.id, action_id)
        return action.reason or NO_EXPLANATION

    async def get_trace(self, action_id: str) -> Optional[TraceEntry]:
        if self._ledger is None:
            return None
        return self._ledger.lookup(self.id, action_id)

    async def get_widget_state(self, top_n: int = 3) -> AgentWidgetState:
        """Monitor and evaluate, then summarize for display."""
        status = await self.monitor()
        actions = await self.evaluate()
        return AgentWidgetState(
            agent_id=self.id,
            agent_name=self.name,
            status=status,
            message=self._status_message(status, actions),
            countdown=self._countdown(actions),
            urgency=self._determine_urgency(status, actions),
            last_updated=self.now(),
            actions=actions[:top_n],
            degraded=self.degraded,
        )

    async def cleanup(self) -> None:
        """Release subscriptions. Safe to call more than once."""
        pass

    # --- Domain hooks ---

    async def _load(self) -> None:
        await self._refresh()

    @abstractmethod
    async def _refresh(self) -> None: ...

    @abstractmethod
    def _classify(self) -> AgentStatus: ...

    @abstractmethod
    def _build_actions(self) -> List[AgentAction]: ...

    @abstractmethod
    async def _perform(self, action: AgentAction) -> bool: ...

    def _trace_context(self, action: AgentAction) -> Dict[str, Any]:
        return {"action_id": action.id, "action": action}

    # --- Helpers ---

    def _record(
        self,
        action: str,
        reasoning: str,
        context: Dict[str, Any],
        action_id: Optional[str] = None,
    ) -> TraceEntry:
        return self.ledger.append(
            agent_id=self.id,
            action=action,
            reasoning=reasoning,
            context=context,
            user_id=self.acting_user_id,
            action_id=action_id,
            timestamp=self.now(),
        )

    def _new_action(
        self,
        action_type: ActionType,
        description: str,
        reason: str,
        priority: int,
        target: Optional[ObligationRecord] = None,
        escalation_level: Optional[EscalationLevel] = None,
        urgency: Optional[UrgencyTier] = None,
    ) -> AgentAction:
        ref = None
        if target is not None:
            ref = ObligationRef(
                kind=target.kind,
                record_id=target.record_id,
                member_id=target.member_id,
            )
        return AgentAction(
            id=f"{self.id}_action_{uuid4().hex[:12]}",
            agent_id=self.id,
            type=action_type,
            description=description,
            reason=reason,
            priority=priority,
            created_at=self.now(),
            target=ref,
            due_at=target.due_at if target is not None else None,
            escalation_level=escalation_level,
            urgency=urgency or urgency_for_priority(priority),
        )

    def _determine_urgency(self, status: AgentStatus, actions: List[AgentAction]) -> UrgencyTier:
        if status == AgentStatus.CLEAR or not actions:
            return UrgencyTier.LOW
        return urgency_for_priority(max(a.priority for a in actions))

    def _status_message(self, status: AgentStatus, actions: List[AgentAction]) -> Optional[str]:
        if status == AgentStatus.CLEAR:
            return None  # Silent when compliant
        if actions:
            return actions[0].description
        return "Attention needed"

    def _countdown(self, actions: List[AgentAction]) -> Optional[int]:
        """Seconds until the top action's deadline, if it is still ahead."""
        if not actions or actions[0].due_at is None:
            return None
        seconds = int((actions[0].due_at - self.now()).total_seconds())
        return seconds if seconds > 0 else None


class ObligationAgent(BaseAgent):
    """
    An agent that owns an obligation cache fed by one fact feed and performs
    side effects through one command gateway.
    """

    feed_name = "feed"
    gateway_name = "gateway"

    def __init__(
        self,
        feed: FactFeed,
        gateway: CommandGateway,
        structure_provider: Optional[FamilyStructureProvider] = None,
        config: Optional[AgentConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(config=config, clock=clock)
        self.feed = feed
        self.dispatcher = CommandDispatcher(
            gateway,
            timeout=self.config.collaborator_timeout_seconds,
            name=self.gateway_name,
        )
        self.structure_provider = structure_provider
        self.store = ObligationStore()
        self._unsubscribe: Optional[Unsubscribe] = None

    def set_structure_provider(self, provider: FamilyStructureProvider) -> None:
        self.structure_provider = provider

    def member_ids(self) -> List[str]:
        if self.structure_provider is None:
            return []
        return self.structure_provider.get_member_ids()

    def get_member(self, member_id: Optional[str]) -> Optional[FamilyMember]:
        if self.structure_provider is None or member_id is None:
            return None
        structure = self.structure_provider.get_family_structure()
        if structure is None:
            return None
        return structure.get_member(member_id)

    async def _load(self) -> None:
        if self._unsubscribe is None and isinstance(self.feed, SubscribableFeed):
            self._unsubscribe = self.feed.subscribe(self.ingest)
        await self._refresh()

    async def _refresh(self) -> None:
        records = await fetch_records(
            self.feed,
            self.member_ids(),
            timeout=self.config.collaborator_timeout_seconds,
            name=self.feed_name,
        )
        for record in records:
            self.ingest(record)
        self.store.mark_refreshed(self.now())

    def ingest(self, record: ObligationRecord) -> None:
        """
        Accept one record from a fetch or a push event.

        Progress made locally (paid, renewal started) sticks until the feed
        reports a new deadline for the same obligation.
        """
        current = self.store.get_by_key(record.authority_key)
        if current is not None and current.due_at == record.due_at:
            record = record.model_copy(update={
                "completed": record.completed or current.completed,
                "renewal_in_progress": record.renewal_in_progress or current.renewal_in_progress,
                "metadata": {**current.metadata, **record.metadata},
            })

        previous = self.store.upsert(record)
        if previous is not None:
            self._record(
                "obligation_superseded",
                f"{record.kind.value} record {record.record_id} was replaced by newer data",
                {"previous": previous, "current": record},
            )

    async def cleanup(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def _days(self, record: ObligationRecord) -> int:
        return days_until(record.due_at, self.now())

    def _hours(self, record: ObligationRecord) -> int:
        return hours_until(record.due_at, self.now())

    def _target_record(self, action: AgentAction) -> Optional[ObligationRecord]:
        if action.target is None:
            return None
        return self.store.get(action.target.kind, action.target.record_id)

    def _trace_context(self, action: AgentAction) -> Dict[str, Any]:
        context = super()._trace_context(action)
        context["obligation"] = self._target_record(action)
        return context

    async def _start_renewal(self, action: AgentAction) -> bool:
        """Hand a renewal or preparation workflow to the gateway."""
        record = self._target_record(action)
        if record is None:
            logger.warning("Agent %s: obligation for action %s is gone", self.id, action.id)
            return False

        result = await self.dispatcher.dispatch(
            action.type.value,
            {
                "kind": record.kind.value,
                "record_id": record.record_id,
                "member_id": record.member_id,
                "reference": record.reference,
            },
        )
        if result.success:
            self._apply_progress(record, action, renewal_in_progress=True)
        return result.success

    def _apply_progress(self, acted_on: ObligationRecord, action: AgentAction, **changes: Any) -> bool:
        """
        Mark progress on the obligation an action just settled.

        The store is re-read after the side effect. If the obligation was
        re-dated or dropped meanwhile, the newer data is kept untouched and
        the mismatch is traced.
        """
        current = self.store.get_by_key(acted_on.authority_key)
        if current is None or current.due_at != acted_on.due_at:
            logger.warning(
                "Agent %s: %s record %s changed while action %s was in flight",
                self.id, acted_on.kind.value, acted_on.record_id, action.id,
            )
            self._record(
                "obligation_changed_during_action",
                f"{acted_on.kind.value} record {acted_on.record_id} changed while "
                f"{action.type.value} was in flight; newer data kept",
                {"action_id": action.id, "acted_on": acted_on, "current": current, "changes": changes},
            )
            return False

        if "metadata" in changes:
            changes["metadata"] = {**current.metadata, **changes["metadata"]}
        self.store.upsert(current.model_copy(update=changes))
        return True
