"""
Aggregate of the session core structures.

SessionState owns the connection registry, the identity index, the waiting
pools and the per-connection state machines. Only SessionCoordinator (and the
Matchmaker it drives) mutates it, always under the coordinator's lock.
"""

from typing import Any

from ..exceptions import SessionInvariantError
from .participant_state_machine import ParticipantStateMachine
from .registry import ConnectionRegistry, IdentityIndex
from .waiting_pools import WaitingPools


class SessionState:
    """Registry, identity index, pools and state machines for one server."""

    def __init__(self, attribute_values: list[str] | tuple[str, ...]):
        self.registry = ConnectionRegistry()
        self.identities = IdentityIndex()
        self.pools = WaitingPools(attribute_values)
        self.machines: dict[str, ParticipantStateMachine] = {}

    def machine_for(self, connection_id: str) -> ParticipantStateMachine:
        """Return the connection's state machine, creating it on first use."""
        machine = self.machines.get(connection_id)
        if machine is None:
            machine = ParticipantStateMachine(connection_id)
            self.machines[connection_id] = machine
        return machine

    def state_of(self, connection_id: str) -> str | None:
        machine = self.machines.get(connection_id)
        return machine.state_id if machine is not None else None

    def assert_consistent(self) -> None:
        """
        Check every cross-structure invariant.

        Raises:
            SessionInvariantError: naming the first invariant found broken
        """
        seen_connections: set[str] = set()
        for identity, connection_id in self.identities.items():
            participant = self.registry.lookup(connection_id)
            if participant is None or participant.identity != identity:
                raise SessionInvariantError(
                    "Identity bound to a connection that does not hold it",
                    invariant="identity_binding",
                    details={"connection_id": connection_id},
                )
            if connection_id in seen_connections:
                raise SessionInvariantError(
                    "Connection bound to more than one identity",
                    invariant="identity_binding",
                    details={"connection_id": connection_id},
                )
            seen_connections.add(connection_id)

        for participant in self.registry:
            connection_id = participant.connection_id
            if self.identities.lookup(participant.identity) != connection_id:
                raise SessionInvariantError(
                    "Participant identity not bound to its connection",
                    invariant="identity_binding",
                    details={"connection_id": connection_id},
                )

            pools = self.pools.pools_containing(connection_id)
            if len(pools) > 1:
                raise SessionInvariantError(
                    "Connection present in more than one pool",
                    invariant="pool_exclusivity",
                    details={"connection_id": connection_id, "pools": pools},
                )
            if pools and pools[0] != participant.attribute:
                raise SessionInvariantError(
                    "Connection waiting in the wrong pool",
                    invariant="pool_exclusivity",
                    details={"connection_id": connection_id, "pool": pools[0]},
                )

            if participant.partner_id is not None:
                if pools:
                    raise SessionInvariantError(
                        "Paired connection still waiting",
                        invariant="pool_exclusivity",
                        details={"connection_id": connection_id},
                    )
                partner = self.registry.lookup(participant.partner_id)
                if partner is None or partner.partner_id != connection_id:
                    raise SessionInvariantError(
                        "Asymmetric or dangling partner reference",
                        invariant="partner_symmetry",
                        details={"connection_id": connection_id, "partner_id": participant.partner_id},
                    )

            expected = "paired" if participant.partner_id is not None else ("waiting" if pools else "idle")
            actual = self.state_of(connection_id)
            if actual != expected:
                raise SessionInvariantError(
                    "State machine disagrees with session structures",
                    invariant="state_machine",
                    details={"connection_id": connection_id, "expected": expected, "actual": actual},
                )

        for attribute in self.pools.attribute_values:
            for connection_id in self.pools.members(attribute):
                if connection_id not in self.registry:
                    raise SessionInvariantError(
                        "Pool holds a connection with no participant",
                        invariant="pool_membership",
                        details={"connection_id": connection_id, "pool": attribute},
                    )

    def get_stats(self) -> dict[str, Any]:
        states: dict[str, int] = {}
        for machine in self.machines.values():
            states[machine.state_id] = states.get(machine.state_id, 0) + 1
        paired = sum(1 for participant in self.registry if participant.partner_id is not None)
        return {
            "connections": sum(1 for m in self.machines.values() if m.state_id != "departed"),
            "participants": len(self.registry),
            "waiting": self.pools.sizes(),
            "pairs": paired // 2,
            "states": states,
            "pairings": sum(m.pairings for m in self.machines.values()),
        }
