"""
Connection registry and identity index.

The registry is the source of truth for who is online and who they are
talking to; the identity index enforces one live connection per identity.
Neither structure knows about the other; SessionCoordinator keeps them in
step.
"""

from collections.abc import Iterator

from ..structured_logging.enhanced_logging_config import get_logger
from .participant_models import Participant

logger = get_logger(__name__)


class ConnectionRegistry:
    """Maps a connection id to its Participant record."""

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def add(self, participant: Participant) -> None:
        self._participants[participant.connection_id] = participant

    def lookup(self, connection_id: str | None) -> Participant | None:
        if connection_id is None:
            return None
        return self._participants.get(connection_id)

    def remove(self, connection_id: str) -> Participant | None:
        return self._participants.pop(connection_id, None)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._participants

    def __len__(self) -> int:
        return len(self._participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(list(self._participants.values()))


class IdentityIndex:
    """Maps a verified identity to the one connection currently holding it."""

    def __init__(self) -> None:
        self._bindings: dict[str, str] = {}

    def bind(self, identity: str, connection_id: str) -> None:
        previous = self._bindings.get(identity)
        if previous is not None and previous != connection_id:
            # Callers evict the previous holder first; this only guards the index itself
            logger.warning(
                "Identity rebound without eviction",
                identity=identity,
                previous_connection_id=previous,
                connection_id=connection_id,
            )
        self._bindings[identity] = connection_id

    def unbind(self, identity: str, connection_id: str) -> bool:
        """Remove the binding only if it still belongs to connection_id."""
        if self._bindings.get(identity) != connection_id:
            return False
        del self._bindings[identity]
        return True

    def lookup(self, identity: str) -> str | None:
        return self._bindings.get(identity)

    def items(self) -> list[tuple[str, str]]:
        return list(self._bindings.items())

    def __len__(self) -> int:
        return len(self._bindings)
