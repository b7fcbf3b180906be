"""
Real-time session core for PairChat.

The registry, identity index and waiting pools live in SessionState; the
SessionCoordinator serializes every operation on them and talks to clients
only through the Transport boundary.
"""
