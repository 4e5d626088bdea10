"""
Orchestrator — registry and heartbeat for every domain agent.

Runs agent lifecycles (initialize, periodic monitor, on-demand evaluate/act)
and aggregates widget states and ranked decisions across agents.

Isolation:
  Any failure inside one agent's cycle is caught here and turned into a
  degraded result for that agent only. Nothing one agent raises can abort
  another agent's cycle or the monitoring loop.

Back-pressure:
  Each tick starts a monitor task only for agents whose previous task has
  finished; busy agents skip the tick instead of queuing.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional

from croniter import croniter

from hayat_kernel.agents.base import BaseAgent
from hayat_kernel.errors import AgentNotFound, DuplicateAgent
from hayat_kernel.models.action import UrgencyTier
from hayat_kernel.models.config import OrchestratorConfig
from hayat_kernel.models.widget import (
    AgentContext,
    AgentDecision,
    AgentStatus,
    AgentWidgetState,
)
from hayat_kernel.trace.ledger import TraceLedger

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    The agent orchestrator.

    Owns the agent registry, never agent-internal state. The trace ledger is
    constructed once and handed to every agent at registration.
    """

    def __init__(
        self,
        ledger: Optional[TraceLedger] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        self.ledger = ledger or TraceLedger()
        self.config = config or OrchestratorConfig()

        self._agents: Dict[str, BaseAgent] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._last_statuses: Dict[str, AgentStatus] = {}
        self._monitor_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self.cycle_count = 0

    @property
    def status(self) -> str:
        """Current monitoring status."""
        if self._monitor_task is not None and not self._monitor_task.done():
            return "running"
        return "stopped"

    @property
    def last_statuses(self) -> Dict[str, AgentStatus]:
        return dict(self._last_statuses)

    # --- Registry ---

    def register(self, agent: BaseAgent) -> None:
        """Register an agent. Duplicate ids replace the old entry unless rejected by config."""
        if agent.id in self._agents:
            if self.config.reject_duplicate_agents:
                raise DuplicateAgent(agent.id)
            logger.warning("Agent %s re-registered; replacing previous instance", agent.id)
        agent.bind_ledger(self.ledger)
        self._agents[agent.id] = agent

    def unregister(self, agent_id: str) -> Optional[BaseAgent]:
        """Remove an agent from the registry."""
        self._last_statuses.pop(agent_id, None)
        return self._agents.pop(agent_id, None)

    def get_agent(self, agent_id: str) -> BaseAgent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFound(agent_id)
        return agent

    def get_agents(self) -> List[BaseAgent]:
        """Get all registered agents."""
        return list(self._agents.values())

    # --- Lifecycle ---

    async def initialize_all(self) -> None:
        """Initialize every agent concurrently; one failure never stops the rest."""
        await asyncio.gather(*(
            self._guard(agent, agent.initialize(), "initialize")
            for agent in self.get_agents()
        ))

    async def cleanup(self) -> None:
        """Stop monitoring, then clean up every agent concurrently."""
        await self.stop_monitoring()
        await asyncio.gather(*(
            self._guard(agent, agent.cleanup(), "clean up")
            for agent in self.get_agents()
        ))

    async def _guard(self, agent: BaseAgent, call: Awaitable[Any], label: str, default: Any = None) -> Any:
        try:
            return await call
        except Exception as e:
            logger.warning("Failed to %s agent %s: %s", label, agent.id, e)
            return default

    # --- Monitoring ---

    def _start_cycle(self) -> Dict[str, asyncio.Task]:
        """Start a monitor task for every agent that is not still busy."""
        started = {}
        for agent_id, agent in self._agents.items():
            running = self._inflight.get(agent_id)
            if running is not None and not running.done():
                logger.debug("Agent %s still monitoring; skipping this tick", agent_id)
                continue
            task = asyncio.create_task(self._monitor_agent(agent))
            self._inflight[agent_id] = task
            started[agent_id] = task
        self.cycle_count += 1
        return started

    async def _monitor_agent(self, agent: BaseAgent) -> AgentStatus:
        status = await self._guard(agent, agent.monitor(), "monitor", AgentStatus.CLEAR)
        self._last_statuses[agent.id] = status
        return status

    async def monitor_all(self) -> Dict[str, AgentStatus]:
        """
        Run one monitor cycle and wait for it.
        Agents still busy from an earlier tick are skipped.
        """
        started = self._start_cycle()
        if started:
            await asyncio.wait(list(started.values()))
        return {agent_id: task.result() for agent_id, task in started.items()}

    def _next_delay(self, interval_seconds: float) -> float:
        """Seconds until the next tick: cron schedule if configured, else the interval."""
        if self.config.monitor_schedule:
            now = datetime.utcnow()
            next_fire = croniter(self.config.monitor_schedule, now).get_next(datetime)
            return max(0.0, (next_fire - now).total_seconds())
        return interval_seconds

    def start_monitoring(self, interval_seconds: Optional[float] = None) -> None:
        """Begin the recurring monitor cycle. Starting twice is a no-op."""
        if self.status == "running":
            return
        interval = interval_seconds or self.config.heartbeat_interval_seconds
        self._stop_event = asyncio.Event()
        self._monitor_task = asyncio.create_task(self._run(self._stop_event, interval))
        logger.info("Monitoring started for %d agents", len(self._agents))

    async def _run(self, stop_event: asyncio.Event, interval_seconds: float) -> None:
        while not stop_event.is_set():
            try:
                self._start_cycle()
            except Exception as e:
                logger.error("Monitoring cycle failed to start: %s", e)
            try:
                await asyncio.wait_for(
                    stop_event.wait(),
                    timeout=self._next_delay(interval_seconds),
                )
            except asyncio.TimeoutError:
                continue

    async def stop_monitoring(self) -> None:
        """End the recurring cycle and cancel in-flight monitor fetches."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._monitor_task is not None:
            await self._monitor_task
            self._monitor_task = None

        pending = [t for t in self._inflight.values() if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()
        logger.info("Monitoring stopped")

    # --- Aggregation ---

    async def get_widget_states(self) -> Dict[str, AgentWidgetState]:
        """One widget state per registered agent, degraded where an agent failed."""
        agents = self.get_agents()
        states = await asyncio.gather(*(self._widget_state(a) for a in agents))
        return {agent.id: state for agent, state in zip(agents, states)}

    async def _widget_state(self, agent: BaseAgent) -> AgentWidgetState:
        try:
            return await agent.get_widget_state(top_n=self.config.widget_top_actions)
        except Exception as e:
            logger.warning("Widget state for agent %s degraded: %s", agent.id, e)
            return AgentWidgetState(
                agent_id=agent.id,
                agent_name=agent.name,
                status=AgentStatus.CLEAR,
                urgency=UrgencyTier.LOW,
                last_updated=datetime.utcnow(),
                degraded=True,
            )

    async def get_decisions(self, context: Optional[AgentContext] = None) -> List[AgentDecision]:
        """
        Ranked candidate actions across every agent, sorted by priority then
        confidence, each with its explanation and trace.
        """
        context = context or AgentContext()
        groups = await asyncio.gather(*(
            self._agent_decisions(agent, context) for agent in self.get_agents()
        ))
        decisions = [d for group in groups for d in group]
        return sorted(decisions, key=lambda d: (-d.action.priority, -d.confidence))

    async def _agent_decisions(self, agent: BaseAgent, context: AgentContext) -> List[AgentDecision]:
        try:
            agent.set_context(context)
            decisions = []
            for action in await agent.evaluate():
                trace = await agent.get_trace(action.id)
                decisions.append(AgentDecision(
                    action=action,
                    reasoning=await agent.explain(action.id),
                    confidence=self._confidence(agent),
                    trace=trace,
                ))
            return decisions
        except Exception as e:
            logger.warning("Decisions from agent %s unavailable: %s", agent.id, e)
            return []

    def _confidence(self, agent: BaseAgent) -> float:
        if agent.degraded:
            return self.config.degraded_confidence
        return self.config.fresh_confidence

    # --- Routing ---

    async def execute_action(self, action_id: str, agent_id: str) -> bool:
        """Route an action to the agent that proposed it."""
        agent = self.get_agent(agent_id)
        return await agent.act(action_id)

    async def explain(self, action_id: str, agent_id: str) -> str:
        agent = self.get_agent(agent_id)
        return await agent.explain(action_id)
