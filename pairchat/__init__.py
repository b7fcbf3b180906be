"""
PairChat server package.

Anonymous one-on-one chat matchmaking: participants register with a verified
institutional email and a binary attribute, get paired with a waiting
participant of the complementary attribute, and exchange messages over a
WebSocket until either side leaves.
"""

__version__ = "0.1.0"
