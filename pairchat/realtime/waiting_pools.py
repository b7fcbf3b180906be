"""
FIFO waiting pools, one per attribute value.

Each pool is an insertion-ordered set: membership tests and removal of an
arbitrary member are O(1), and popping always returns the member that has
waited longest.
"""

from collections import OrderedDict


class WaitingPools:
    """Ordered pools of connection ids awaiting a partner."""

    def __init__(self, attribute_values: list[str] | tuple[str, ...]):
        if len(attribute_values) != 2 or attribute_values[0] == attribute_values[1]:
            raise ValueError("WaitingPools requires exactly two distinct attribute values")
        self.attribute_values = tuple(attribute_values)
        self._pools: dict[str, OrderedDict[str, None]] = {value: OrderedDict() for value in self.attribute_values}

    def complement(self, attribute: str) -> str:
        """Return the attribute value participants with ``attribute`` are paired with."""
        first, second = self.attribute_values
        if attribute == first:
            return second
        if attribute == second:
            return first
        raise KeyError(attribute)

    def enqueue(self, attribute: str, connection_id: str) -> None:
        """Append to the back of a pool. Re-enqueueing keeps the original position."""
        self._pools[attribute].setdefault(connection_id, None)

    def pop_earliest(self, attribute: str) -> str | None:
        """Remove and return the longest-waiting member, or None if empty."""
        pool = self._pools[attribute]
        if not pool:
            return None
        connection_id, _ = pool.popitem(last=False)
        return connection_id

    def discard(self, connection_id: str) -> None:
        """Remove connection_id from every pool; absent members are ignored."""
        for pool in self._pools.values():
            pool.pop(connection_id, None)

    def members(self, attribute: str) -> list[str]:
        return list(self._pools[attribute])

    def pools_containing(self, connection_id: str) -> list[str]:
        return [attribute for attribute, pool in self._pools.items() if connection_id in pool]

    def sizes(self) -> dict[str, int]:
        return {attribute: len(pool) for attribute, pool in self._pools.items()}

    def __contains__(self, connection_id: object) -> bool:
        return any(connection_id in pool for pool in self._pools.values())
