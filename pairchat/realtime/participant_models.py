"""
Data models for the session core.

Partners reference each other by connection id and are resolved through the
registry on every use, never held as direct object references: either side
may disappear between two events.
"""

import time
from dataclasses import dataclass, field


@dataclass
class Participant:
    """
    One registered participant, bound to exactly one live connection.

    ``partner_id`` is either None or the connection id of a participant whose
    own ``partner_id`` points back at this one.
    """

    connection_id: str
    identity: str
    attribute: str
    partner_id: str | None = None
    registered_at: float = field(default_factory=time.time)

    @property
    def is_paired(self) -> bool:
        return self.partner_id is not None
