"""
Client tier-change approval.

A client asks for a different pricing tier; every sales agent is notified
with ready-to-copy ``/aprobar`` and ``/rechazar`` commands, and the first
agent to answer settles the request. Per client the state goes
NONE → PENDING → NONE, where approval also assigns the tier.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from . import messages
from .config import TierLabels
from .errors import NoPendingApprovalRequestError, UnauthorizedError
from .models import ClientTier, PendingApprovalRequest
from .store import KeyValueStore, MemoryStore, read_json, save_json
from .transport import Transport

logger = logging.getLogger(__name__)


class AgentDirectory:
    """Sales agents allowed to approve requests, name → client id."""

    def __init__(self, agents: dict[str, str] | None = None, path: Path | None = None):
        self.path = path
        self._agents = {name.strip().lower(): str(number) for name, number in (agents or {}).items()}

    @classmethod
    def from_file(cls, path: Path) -> "AgentDirectory":
        """Load agents.json, creating an empty one when missing."""
        if not path.exists():
            logger.warning(f"No agents file at {path}, /enviar and approvals are disabled until it is filled in")
            save_json(path, {})
            return cls(path=path)
        data = read_json(path, default={})
        if not isinstance(data, dict):
            logger.warning(f"{path} is not a JSON object, starting with no agents")
            data = {}
        directory = cls(data, path=path)
        logger.info(f"Loaded {len(directory)} agent(s) from {path}")
        return directory

    def __len__(self) -> int:
        return len(self._agents)

    def __bool__(self) -> bool:
        return bool(self._agents)

    def get(self, name: str) -> str | None:
        return self._agents.get(name.strip().lower())

    def names(self) -> list[str]:
        return list(self._agents)

    def items(self) -> list[tuple[str, str]]:
        return list(self._agents.items())

    def is_agent(self, client_id: str) -> bool:
        return client_id in self._agents.values()


class ApprovalStatus(str, Enum):
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    NO_PENDING_REQUEST = "no_pending_request"
    NO_APPROVERS = "no_approvers"


@dataclass
class ApprovalOutcome:
    """Result of a workflow operation and the reply for whoever invoked it."""

    status: ApprovalStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is ApprovalStatus.OK


class ApprovalWorkflow:
    """Pending tier-change requests and their resolution by agents."""

    def __init__(
        self,
        agents: AgentDirectory,
        tiers: KeyValueStore,
        transport: Transport,
        pending: KeyValueStore | None = None,
        labels: TierLabels | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.agents = agents
        self.tiers = tiers
        self.transport = transport
        self.pending = pending if pending is not None else MemoryStore()
        self.labels = labels or TierLabels()
        self.clock = clock or datetime.now

    def pending_for(self, client_id: str) -> PendingApprovalRequest | None:
        return self.pending.get(client_id)

    async def request(
        self,
        client_id: str,
        tier: ClientTier,
        client_name: str | None = None,
    ) -> ApprovalOutcome:
        """Record a tier-change request and notify every agent."""
        if not self.agents:
            logger.warning(f"Tier request from {client_id} dropped: no agents configured")
            return ApprovalOutcome(ApprovalStatus.NO_APPROVERS, messages.NO_AGENTS)

        previous = self.pending.get(client_id)
        if previous is not None:
            logger.warning(
                f"Client {client_id} replaced pending request for "
                f"{previous.requested_tier.value} with {tier.value}"
            )

        self.pending.set(
            client_id,
            PendingApprovalRequest(client_id, tier, self.clock(), client_name),
        )
        label = tier.label(self.labels)
        logger.info(f"Client {client_id} requested tier {tier.value}")

        info = messages.tier_change_request(client_name or client_id, client_id, label)
        # Commands go in separate messages so agents can copy them as-is
        approve_command = f"/aprobar {client_id} {tier.value}"
        reject_command = f"/rechazar {client_id}"
        for name, agent_id in self.agents.items():
            try:
                for text in (info, approve_command, reject_command):
                    await self.transport.send_text(agent_id, text)
                logger.info(f"Approval request sent to agent {name}")
            except Exception:
                logger.exception(f"Could not notify agent {name} about {client_id}")

        return ApprovalOutcome(ApprovalStatus.OK, messages.request_sent(label))

    def _check(self, actor_id: str, client_id: str) -> PendingApprovalRequest:
        if not self.agents.is_agent(actor_id):
            raise UnauthorizedError(f"{actor_id} is not an agent")
        request = self.pending.get(client_id)
        if request is None:
            raise NoPendingApprovalRequestError(f"No pending request for {client_id}")
        return request

    async def approve(self, actor_id: str, client_id: str, tier: ClientTier) -> ApprovalOutcome:
        """Assign ``tier`` to the client and close its pending request."""
        try:
            request = self._check(actor_id, client_id)
        except UnauthorizedError as e:
            logger.warning(f"Approval denied: {e}")
            return ApprovalOutcome(ApprovalStatus.UNAUTHORIZED, messages.UNAUTHORIZED)
        except NoPendingApprovalRequestError as e:
            logger.info(str(e))
            return ApprovalOutcome(ApprovalStatus.NO_PENDING_REQUEST, messages.no_pending_request(client_id))

        if tier is not request.requested_tier:
            logger.info(
                f"Agent {actor_id} approved {tier.value} for {client_id} "
                f"(requested {request.requested_tier.value})"
            )
        self.tiers.set(client_id, tier.value)
        self.pending.delete(client_id)
        logger.info(f"Agent {actor_id} approved tier {tier.value} for {client_id}")

        label = tier.label(self.labels)
        await self._notify(client_id, messages.client_approved(label))
        return ApprovalOutcome(ApprovalStatus.OK, messages.approve_ack(client_id, label))

    async def reject(self, actor_id: str, client_id: str) -> ApprovalOutcome:
        """Close the pending request without changing the client's tier."""
        try:
            self._check(actor_id, client_id)
        except UnauthorizedError as e:
            logger.warning(f"Rejection denied: {e}")
            return ApprovalOutcome(ApprovalStatus.UNAUTHORIZED, messages.UNAUTHORIZED)
        except NoPendingApprovalRequestError as e:
            logger.info(str(e))
            return ApprovalOutcome(ApprovalStatus.NO_PENDING_REQUEST, messages.no_pending_request(client_id))

        self.pending.delete(client_id)
        logger.info(f"Agent {actor_id} rejected the request of {client_id}")

        await self._notify(client_id, messages.CLIENT_REJECTED)
        return ApprovalOutcome(ApprovalStatus.OK, messages.reject_ack(client_id))

    async def _notify(self, client_id: str, text: str) -> None:
        try:
            await self.transport.send_text(client_id, text)
        except Exception:
            logger.exception(f"Could not notify client {client_id}")
