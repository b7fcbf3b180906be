"""
Queue-based matchmaker.

A participant looking for a partner is paired with the longest-waiting member
of the complementary pool, or joins the back of its own pool. FIFO order
within a pool means nobody is overtaken by a later arrival of the same
attribute.
"""

from ..structured_logging.enhanced_logging_config import get_logger
from .participant_models import Participant
from .session_state import SessionState
from .transport import EVENT_CHAT_START, EVENT_WAITING, Transport

logger = get_logger(__name__)


class Matchmaker:
    """Pairs participants across the two waiting pools of a SessionState."""

    def __init__(self, state: SessionState, transport: Transport):
        self.state = state
        self.transport = transport

    def attempt_match(self, connection_id: str) -> str | None:
        """
        Pair ``connection_id`` with a waiting partner or enqueue it.

        The participant must be idle; callers never invoke this for a
        waiting or paired participant.

        Returns:
            The partner's connection id if a pairing was made, else None
        """
        participant = self.state.registry.lookup(connection_id)
        if participant is None:
            logger.debug("Match requested for unknown connection", connection_id=connection_id)
            return None

        complement = self.state.pools.complement(participant.attribute)
        partner_id = self.state.pools.pop_earliest(complement)
        if partner_id is None:
            self._enqueue(participant)
            return None

        partner = self.state.registry.lookup(partner_id)
        if partner is None:
            # The dequeued connection left without its pool entry being cleared; not retried
            logger.warning(
                "Dequeued partner no longer registered",
                connection_id=connection_id,
                stale_partner_id=partner_id,
            )
            self._enqueue(participant)
            return None

        participant.partner_id = partner_id
        partner.partner_id = connection_id
        self.state.machine_for(partner_id).pair_up(partner_id=connection_id)
        self.state.machine_for(connection_id).pair_up(partner_id=partner_id)

        logger.info(
            "Participants paired",
            connection_id=connection_id,
            partner_id=partner_id,
            attribute=participant.attribute,
            partner_attribute=partner.attribute,
        )
        self.transport.send(connection_id, EVENT_CHAT_START, {"partnerRef": partner_id})
        self.transport.send(partner_id, EVENT_CHAT_START, {"partnerRef": connection_id})
        return partner_id

    def _enqueue(self, participant: Participant) -> None:
        self.state.pools.enqueue(participant.attribute, participant.connection_id)
        self.state.machine_for(participant.connection_id).enqueue()
        logger.info(
            "Participant waiting for a partner",
            connection_id=participant.connection_id,
            attribute=participant.attribute,
            pool_size=self.state.pools.sizes()[participant.attribute],
        )
        self.transport.send(participant.connection_id, EVENT_WAITING)
