"""
Collaborator dispatch — timeout-bounded calls into external collaborators.

Behavioral Contract:
- Every fetch and command is bounded by a timeout; the core never waits
  indefinitely on a collaborator.
- Fetch failures surface as CollaboratorUnavailable so monitors can degrade
  to their last-known status.
- Command failures never raise: they come back as a structured
  CommandResult with success=False.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from hayat_kernel.collaborators.interfaces import CommandGateway, FactFeed
from hayat_kernel.errors import CollaboratorUnavailable
from hayat_kernel.models.obligation import ObligationRecord

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Outcome of dispatching one command to a gateway."""

    kind: str
    success: bool
    reference: Optional[str] = None
    error: Optional[str] = None
    executed_at: datetime
    duration_seconds: float


async def fetch_records(
    feed: FactFeed,
    member_ids: List[str],
    timeout: float,
    name: str = "feed",
) -> List[ObligationRecord]:
    """Fetch records from a feed, converting any failure to CollaboratorUnavailable."""
    try:
        records = await asyncio.wait_for(feed.fetch(member_ids), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise CollaboratorUnavailable(name, f"fetch timed out after {timeout}s") from e
    except CollaboratorUnavailable:
        raise
    except Exception as e:
        raise CollaboratorUnavailable(name, str(e)) from e
    return list(records or [])


class CommandDispatcher:
    """Dispatches side-effecting commands to one gateway."""

    def __init__(self, gateway: CommandGateway, timeout: float = 10.0, name: str = "gateway"):
        self.gateway = gateway
        self.timeout = timeout
        self.name = name

    async def dispatch(self, kind: str, params: Dict[str, Any]) -> CommandResult:
        """Perform one command. Never raises."""
        start = time.monotonic()
        try:
            outcome = await asyncio.wait_for(
                self.gateway.perform(kind, params), timeout=self.timeout
            )
            elapsed = time.monotonic() - start
            if not outcome.success:
                logger.warning(
                    "%s rejected %s: %s", self.name, kind, outcome.error or "no detail"
                )
            return CommandResult(
                kind=kind,
                success=outcome.success,
                reference=outcome.reference,
                error=outcome.error,
                executed_at=datetime.utcnow(),
                duration_seconds=round(elapsed, 3),
            )
        except asyncio.TimeoutError:
            error = f"timed out after {self.timeout}s"
        except Exception as e:
            error = str(e) or e.__class__.__name__

        elapsed = time.monotonic() - start
        logger.warning("%s failed to perform %s: %s", self.name, kind, error)
        return CommandResult(
            kind=kind,
            success=False,
            error=error,
            executed_at=datetime.utcnow(),
            duration_seconds=round(elapsed, 3),
        )
