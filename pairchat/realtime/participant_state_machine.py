"""
Per-connection participant state machine.

Every lifecycle change of a connection is driven through this machine, so a
coordinator bug that would, say, enqueue a paired participant fails loudly
with TransitionNotAllowed instead of corrupting the pools.
"""

from typing import Any

from statemachine import State, StateMachine

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class ParticipantStateMachine(StateMachine):
    """
    Lifecycle of one connection.

    States:
    - unregistered: connected, no participant record yet
    - idle: registered, unpaired and not in any pool (just registered, or partner left)
    - waiting: in its attribute's waiting pool
    - paired: has a partner
    - departed: connection gone (final)

    Transitions:
    - unregistered → idle: admit
    - idle/waiting → paired: pair_up
    - idle → waiting: enqueue
    - paired → idle: unpair
    - idle/waiting/paired → unregistered: release (record dropped, connection kept)
    - any → departed: depart
    """

    unregistered = State("Unregistered", initial=True)
    idle = State("Idle")
    waiting = State("Waiting")
    paired = State("Paired")
    departed = State("Departed", final=True)

    admit = unregistered.to(idle)
    pair_up = idle.to(paired) | waiting.to(paired)
    enqueue = idle.to(waiting)
    unpair = paired.to(idle)
    release = idle.to(unregistered) | waiting.to(unregistered) | paired.to(unregistered)
    depart = (
        unregistered.to(departed) | idle.to(departed) | waiting.to(departed) | paired.to(departed)
    )

    def __init__(self, connection_id: str):
        # Set attributes BEFORE super().__init__() because on_enter_state is called during init
        self.connection_id = connection_id
        self.partner_id: str | None = None
        self.pairings = 0
        super().__init__()

    def on_enter_state(self, state: State, event=None, **kwargs) -> None:
        logger.debug(
            "Participant state transition",
            connection_id=self.connection_id,
            trigger_event=str(event) if event else "initial",
            to_state=state.id,
        )

    def on_pair_up(self, partner_id: str | None = None) -> None:
        self.partner_id = partner_id
        self.pairings += 1

    def on_unpair(self) -> None:
        self.partner_id = None

    def on_release(self) -> None:
        self.partner_id = None

    def on_depart(self) -> None:
        self.partner_id = None

    @property
    def state_id(self) -> str:
        return self.current_state.id

    def get_stats(self) -> dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "current_state": self.state_id,
            "partner_id": self.partner_id,
            "pairings": self.pairings,
        }
