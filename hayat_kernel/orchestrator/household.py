"""Composition root: one guardian, three dependent agents, one ledger."""

from datetime import datetime
from typing import Callable, Optional

from hayat_kernel.agents.compliance import ComplianceSentinelAgent
from hayat_kernel.agents.guardian import FamilyGuardianAgent
from hayat_kernel.agents.residency import ResidencyIdentityAgent
from hayat_kernel.agents.wellbeing import WellBeingAgent
from hayat_kernel.collaborators.interfaces import CommandGateway, FactFeed
from hayat_kernel.models.config import AgentConfig, OrchestratorConfig
from hayat_kernel.models.family import FamilyStructure
from hayat_kernel.orchestrator.loop import Orchestrator
from hayat_kernel.trace.ledger import TraceLedger


def build_household_orchestrator(
    identity_feed: FactFeed,
    fine_feed: FactFeed,
    medical_feed: FactFeed,
    renewal_gateway: CommandGateway,
    payment_gateway: CommandGateway,
    health_gateway: CommandGateway,
    structure: Optional[FamilyStructure] = None,
    ledger: Optional[TraceLedger] = None,
    config: Optional[OrchestratorConfig] = None,
    agent_config: Optional[AgentConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Orchestrator:
    """
    Build an orchestrator with all four domain agents registered.

    The guardian is the family-structure provider for the other three.
    """
    orchestrator = Orchestrator(ledger=ledger, config=config)
    guardian = FamilyGuardianAgent(structure=structure, config=agent_config, clock=clock)

    orchestrator.register(guardian)
    orchestrator.register(ResidencyIdentityAgent(
        identity_feed, renewal_gateway, guardian, config=agent_config, clock=clock,
    ))
    orchestrator.register(ComplianceSentinelAgent(
        fine_feed, payment_gateway, guardian, config=agent_config, clock=clock,
    ))
    orchestrator.register(WellBeingAgent(
        medical_feed, health_gateway, guardian, config=agent_config, clock=clock,
    ))
    return orchestrator
