"""
HAYAT Kernel API — FastAPI endpoints.

A thin caller-facing adapter over the orchestrator for:
- Widget states
- Ranked decisions
- Action execution and explanation
- Trace queries
- Monitoring control
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from hayat_kernel.errors import ActionNotFound, AgentNotFound
from hayat_kernel.logging_setup import setup_logging
from hayat_kernel.models.config import OrchestratorConfig
from hayat_kernel.models.widget import AgentContext
from hayat_kernel.orchestrator.loop import Orchestrator
from hayat_kernel.trace.ledger import TraceLedger, render_explanation


# --- Request/Response Models ---

class DecisionsRequest(BaseModel):
    current_user_id: str = "api_user"


class ExecuteRequest(BaseModel):
    current_user_id: Optional[str] = None


class ExecuteResponse(BaseModel):
    action_id: str
    agent_id: str
    success: bool


# --- Application Factory ---

def create_app(
    orchestrator: Optional[Orchestrator] = None,
    ledger: Optional[TraceLedger] = None,
    config: Optional[OrchestratorConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="HAYAT Kernel API",
        description="Household obligation agents — orchestration and trace ledger",
        version="0.1.0",
    )

    orch = orchestrator or Orchestrator(ledger=ledger, config=config)
    app.state.orchestrator = orch
    app.state.ledger = orch.ledger

    # === WIDGETS ===

    @app.get("/widgets")
    async def get_widget_states():
        """One widget state per registered agent."""
        states = await orch.get_widget_states()
        return {agent_id: s.model_dump(mode="json") for agent_id, s in states.items()}

    # === DECISIONS ===

    @app.post("/decisions")
    async def get_decisions(req: DecisionsRequest):
        """Ranked candidate actions across all agents."""
        decisions = await orch.get_decisions(
            AgentContext(current_user_id=req.current_user_id)
        )
        return [d.model_dump(mode="json") for d in decisions]

    # === ACTIONS ===

    @app.post("/agents/{agent_id}/actions/{action_id}/execute")
    async def execute_action(agent_id: str, action_id: str, req: Optional[ExecuteRequest] = None):
        """Execute an action proposed in the latest evaluation."""
        try:
            agent = orch.get_agent(agent_id)
            if req is not None and req.current_user_id:
                agent.set_context(AgentContext(current_user_id=req.current_user_id))
            success = await orch.execute_action(action_id, agent_id)
        except AgentNotFound:
            raise HTTPException(404, "Agent not found")
        except ActionNotFound:
            raise HTTPException(404, "Action not found")
        return ExecuteResponse(action_id=action_id, agent_id=agent_id, success=success)

    @app.get("/agents/{agent_id}/actions/{action_id}/explain")
    async def explain_action(agent_id: str, action_id: str):
        """Why an action was proposed or taken."""
        try:
            explanation = await orch.explain(action_id, agent_id)
        except AgentNotFound:
            raise HTTPException(404, "Agent not found")
        except ActionNotFound:
            raise HTTPException(404, "Action not found")
        return {"action_id": action_id, "agent_id": agent_id, "explanation": explanation}

    # === TRACES ===

    @app.get("/traces/user/{user_id}")
    def get_user_traces(user_id: str):
        """Every trace recorded for a user, most recent first."""
        return [
            {**t.model_dump(mode="json"), "explanation": render_explanation(t)}
            for t in orch.ledger.by_user(user_id)
        ]

    @app.get("/traces/agent/{agent_id}")
    def get_agent_traces(agent_id: str):
        """Every trace written by one agent."""
        return [t.model_dump(mode="json") for t in orch.ledger.by_agent(agent_id)]

    @app.get("/traces/verify")
    def verify_traces():
        """Verify ledger chain integrity."""
        return {
            "integrity_valid": orch.ledger.verify_chain_integrity(),
            "total_records": orch.ledger.count(),
        }

    # === ORCHESTRATOR ===

    @app.get("/orchestrator/status")
    def orchestrator_status():
        """Current orchestrator status."""
        return {
            "status": orch.status,
            "config": orch.config.model_dump(),
            "registered_agents": [a.id for a in orch.get_agents()],
            "cycle_count": orch.cycle_count,
            "last_statuses": {k: v.value for k, v in orch.last_statuses.items()},
        }

    @app.post("/orchestrator/initialize")
    async def initialize_agents():
        """Initialize every registered agent."""
        await orch.initialize_all()
        return {
            a.id: {"lifecycle": a.lifecycle.value, "degraded": a.degraded}
            for a in orch.get_agents()
        }

    @app.post("/orchestrator/monitor")
    async def trigger_monitor():
        """Force one monitor cycle."""
        statuses = await orch.monitor_all()
        return {agent_id: status.value for agent_id, status in statuses.items()}

    return app


# Default application instance
setup_logging()
app = create_app()
