"""Error taxonomy shared by the agents, the orchestrator and the ledger."""


class HayatError(Exception):
    """Base class for all kernel errors."""
    pass


class CollaboratorUnavailable(HayatError):
    """Raised when a fact-fetch or command call to an external collaborator fails."""

    def __init__(self, collaborator: str, detail: str = ""):
        self.collaborator = collaborator
        self.detail = detail
        message = f"Collaborator {collaborator} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ActionNotFound(HayatError):
    """Raised when an action id is stale or was never produced by the agent."""

    def __init__(self, agent_id: str, action_id: str):
        self.agent_id = agent_id
        self.action_id = action_id
        super().__init__(f"Action {action_id} not found for agent {agent_id}")


class AgentNotFound(HayatError):
    """Raised when the orchestrator cannot route to an agent id."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} not found")


class DuplicateAgent(HayatError):
    """Raised on duplicate registration when the orchestrator rejects duplicates."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is already registered")


class InvalidActionTransition(HayatError):
    """Raised when an action status would move backwards or skip a state."""
    pass


class LedgerNotBound(HayatError):
    """Raised when an agent must write a trace before a ledger was attached."""
    pass
