"""
Session coordinator for PairChat.

Translates connection events into registry, identity index and pool updates,
drives the matchmaker, and emits outbound events through the transport.

Every public method takes the coordinator lock for its whole duration, so
the four core structures are only ever observed between complete
operations. Nothing under the lock awaits: transport sends are queued, not
delivered.
"""

import threading
from typing import Any

from pydantic import ValidationError

from ..error_types import ErrorMessages, ErrorType, create_websocket_error_response
from ..exceptions import ErrorContext, IdentityValidationError
from ..structured_logging.enhanced_logging_config import get_logger
from .identity_policy import IdentityPolicy
from .inbound_models import EVENT_MESSAGE, EVENT_NEXT, EVENT_REGISTER, RegisterRequest
from .matchmaker import Matchmaker
from .participant_models import Participant
from .session_state import SessionState
from .transport import EVENT_DISPLACED, EVENT_ERROR, EVENT_MESSAGE as OUT_MESSAGE, EVENT_PARTNER_LEFT, Transport

logger = get_logger(__name__)


class SessionCoordinator:
    """
    Owns the session state and serializes every operation on it.

    Lifecycle per connection: on_connect, any number of on_event calls,
    on_disconnect. A connection evicted by a newer registration of the same
    identity is force-closed; events it still delivers before its own
    on_disconnect are ignored.
    """

    def __init__(
        self,
        transport: Transport,
        identity_policy: IdentityPolicy,
        attribute_values: list[str] | tuple[str, ...],
        *,
        notify_displaced: bool = False,
    ) -> None:
        self.transport = transport
        self.identity_policy = identity_policy
        self.notify_displaced = notify_displaced
        self.state = SessionState(attribute_values)
        self.matchmaker = Matchmaker(self.state, transport)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Transport entry points
    # ------------------------------------------------------------------

    def on_connect(self, connection_id: str) -> None:
        with self._lock:
            self.state.machine_for(connection_id)
            logger.info("Connection opened", connection_id=connection_id)

    def on_event(self, connection_id: str, event_type: str, data: Any = None) -> None:
        """Dispatch one inbound event. Unknown event types are reported to the sender."""
        if event_type == EVENT_REGISTER:
            try:
                request = RegisterRequest.model_validate(data if isinstance(data, dict) else {})
            except ValidationError as e:
                logger.warning(
                    "Malformed register request",
                    connection_id=connection_id,
                    error_count=e.error_count(),
                )
                self._send_error(
                    connection_id,
                    ErrorType.INVALID_INPUT,
                    "register requires 'identity' and 'attribute' strings",
                    ErrorMessages.INVALID_INPUT,
                )
                return
            self.register(connection_id, request.identity, request.attribute)
        elif event_type == EVENT_MESSAGE:
            self.relay_message(connection_id, data)
        elif event_type == EVENT_NEXT:
            self.request_next(connection_id)
        else:
            logger.warning("Unknown event type", connection_id=connection_id, event_type=event_type)
            self._send_error(
                connection_id,
                ErrorType.UNKNOWN_EVENT,
                f"Unknown event type: {event_type}",
                ErrorMessages.UNKNOWN_EVENT,
            )

    def on_disconnect(self, connection_id: str) -> None:
        """The transport reports the connection closed. Terminal for this id."""
        with self._lock:
            removed = self._disconnect(connection_id)
            machine = self.state.machines.pop(connection_id, None)
            if machine is not None and not machine.current_state.final:
                machine.depart()
            if machine is not None:
                logger.debug("Participant machine retired", **machine.get_stats())
            logger.info("Connection closed", connection_id=connection_id, participant_removed=removed)

    # ------------------------------------------------------------------
    # Protocol operations
    # ------------------------------------------------------------------

    def register(self, connection_id: str, identity: str, attribute: str) -> Participant | None:
        """
        Register a participant and try to pair it.

        Returns:
            The new Participant, or None if the registration was rejected
        """
        with self._lock:
            if self._has_departed(connection_id):
                logger.debug("Ignoring register from departed connection", connection_id=connection_id)
                return None

            try:
                self._validate_registration(connection_id, identity, attribute)
            except IdentityValidationError as e:
                error_type = ErrorType.INVALID_IDENTITY if e.field_name == "identity" else ErrorType.INVALID_ATTRIBUTE
                self._send_error(connection_id, error_type, e.message, e.user_friendly)
                return None

            participant = self._register_or_replace(connection_id, identity, attribute)
            self.matchmaker.attempt_match(connection_id)
            return participant

    def register_or_replace(self, connection_id: str, identity: str, attribute: str) -> Participant:
        """Install a participant without matching it. Evicts any other holder of the identity."""
        with self._lock:
            return self._register_or_replace(connection_id, identity, attribute)

    def relay_message(self, connection_id: str, payload: Any) -> bool:
        """
        Forward payload verbatim to the sender's current partner.

        Returns:
            True if the message was handed to the transport; False when the
            sender is not paired (messages in flight during a departure)
        """
        with self._lock:
            participant = self.state.registry.lookup(connection_id)
            if participant is None or participant.partner_id is None:
                logger.debug("Dropping message from unpaired connection", connection_id=connection_id)
                return False
            self.transport.send(participant.partner_id, OUT_MESSAGE, {"payload": payload})
            return True

    def request_next(self, connection_id: str) -> str | None:
        """
        Leave the current conversation and look for a new partner.

        When paired, the partner is told and left idle; the requester goes
        back through the matchmaker. When idle (the partner already left),
        this is the explicit request to match again. Otherwise a no-op.

        Returns:
            The new partner's connection id, if a pairing was made
        """
        with self._lock:
            participant = self.state.registry.lookup(connection_id)
            if participant is None:
                return None

            if participant.partner_id is not None:
                self._unpair(participant)
                self.state.machine_for(connection_id).unpair()
                return self.matchmaker.attempt_match(connection_id)

            if self.state.state_of(connection_id) == "idle":
                return self.matchmaker.attempt_match(connection_id)

            logger.debug("next ignored while waiting", connection_id=connection_id)
            return None

    def disconnect(self, connection_id: str) -> bool:
        """
        Drop the connection's participant record, keeping the connection.

        Idempotent: a second call finds nothing to clean up and returns False.
        """
        with self._lock:
            removed = self._disconnect(connection_id)
            if removed:
                self.state.machine_for(connection_id).release()
            return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, connection_id: str) -> Participant | None:
        with self._lock:
            return self.state.registry.lookup(connection_id)

    def lookup_by_identity(self, identity: str) -> str | None:
        with self._lock:
            return self.state.identities.lookup(identity)

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            return self.state.get_stats()

    # ------------------------------------------------------------------
    # Internals; callers hold the lock
    # ------------------------------------------------------------------

    def _has_departed(self, connection_id: str) -> bool:
        machine = self.state.machines.get(connection_id)
        return machine is not None and machine.current_state.final

    def _validate_registration(self, connection_id: str, identity: str, attribute: str) -> None:
        context = ErrorContext(connection_id=connection_id, event_type=EVENT_REGISTER)
        if not self.identity_policy.validate(identity):
            raise IdentityValidationError(
                "Identity rejected by policy",
                context,
                field_name="identity",
                user_friendly=f"{ErrorMessages.INVALID_IDENTITY} ({self.identity_policy.description})",
            )
        if attribute not in self.state.pools.attribute_values:
            raise IdentityValidationError(
                f"Unsupported attribute: {attribute}",
                context,
                field_name="attribute",
                user_friendly=(
                    f"{ErrorMessages.INVALID_ATTRIBUTE} ({', '.join(self.state.pools.attribute_values)})"
                ),
            )

    def _register_or_replace(self, connection_id: str, identity: str, attribute: str) -> Participant:
        holder = self.state.identities.lookup(identity)
        if holder is not None and holder != connection_id:
            self._evict(holder)

        if connection_id in self.state.registry:
            # Same connection registering again: drop its old record first
            self._disconnect(connection_id)
            self.state.machine_for(connection_id).release()

        participant = Participant(connection_id=connection_id, identity=identity, attribute=attribute)
        self.state.registry.add(participant)
        self.state.identities.bind(identity, connection_id)
        self.state.machine_for(connection_id).admit()
        logger.info("Participant registered", connection_id=connection_id, identity=identity, attribute=attribute)
        return participant

    def _evict(self, connection_id: str) -> None:
        logger.info("Evicting connection holding a re-registered identity", connection_id=connection_id)
        if self.notify_displaced:
            self.transport.send(connection_id, EVENT_DISPLACED, {"reason": "signed_in_elsewhere"})
        self._disconnect(connection_id)
        machine = self.state.machines.get(connection_id)
        if machine is not None and not machine.current_state.final:
            machine.depart()
        self.transport.force_close(connection_id, "Identity registered on another connection")

    def _unpair(self, participant: Participant) -> None:
        """Notify the partner and clear both sides of the pairing."""
        partner_id = participant.partner_id
        if partner_id is None:
            return
        self.transport.send(partner_id, EVENT_PARTNER_LEFT)
        partner = self.state.registry.lookup(partner_id)
        if partner is not None:
            partner.partner_id = None
            self.state.machine_for(partner_id).unpair()
        participant.partner_id = None
        logger.info("Pairing ended", connection_id=participant.connection_id, partner_id=partner_id)

    def _disconnect(self, connection_id: str) -> bool:
        """
        The single cleanup primitive.

        Unbinds the identity, releases the partner (who is told and left
        idle, not re-queued), clears pool membership and deletes the record.
        Returns False when there was nothing to clean up.
        """
        participant = self.state.registry.lookup(connection_id)
        if participant is None:
            return False

        self.state.identities.unbind(participant.identity, connection_id)
        self._unpair(participant)
        self.state.pools.discard(connection_id)
        self.state.registry.remove(connection_id)
        logger.debug("Participant removed", connection_id=connection_id)
        return True

    def _send_error(
        self,
        connection_id: str,
        error_type: ErrorType,
        message: str,
        user_friendly: str | None = None,
    ) -> None:
        self.transport.send(
            connection_id,
            EVENT_ERROR,
            create_websocket_error_response(error_type, message, user_friendly),
        )
