"""
Unit tests for the connection registry and identity index.
"""

from pairchat.realtime.participant_models import Participant
from pairchat.realtime.registry import ConnectionRegistry, IdentityIndex


class TestConnectionRegistry:
    """Test cases for ConnectionRegistry."""

    def test_add_and_lookup(self):
        """Test a participant is found by its connection id."""
        registry = ConnectionRegistry()
        participant = Participant(connection_id="c1", identity="a@mit.edu", attribute="male")

        registry.add(participant)

        assert registry.lookup("c1") is participant
        assert "c1" in registry
        assert len(registry) == 1

    def test_lookup_missing_or_none(self):
        """Test lookups of unknown or None ids return None."""
        registry = ConnectionRegistry()

        assert registry.lookup("missing") is None
        assert registry.lookup(None) is None

    def test_remove_is_idempotent(self):
        """Test removing twice returns the record then None."""
        registry = ConnectionRegistry()
        participant = Participant(connection_id="c1", identity="a@mit.edu", attribute="male")
        registry.add(participant)

        assert registry.remove("c1") is participant
        assert registry.remove("c1") is None
        assert "c1" not in registry

    def test_iteration_tolerates_mutation(self):
        """Test iterating while removing does not raise."""
        registry = ConnectionRegistry()
        for i in range(3):
            registry.add(Participant(connection_id=f"c{i}", identity=f"u{i}@mit.edu", attribute="male"))

        for participant in registry:
            registry.remove(participant.connection_id)

        assert len(registry) == 0


class TestIdentityIndex:
    """Test cases for IdentityIndex."""

    def test_bind_and_lookup(self):
        """Test an identity resolves to its connection."""
        index = IdentityIndex()
        index.bind("a@mit.edu", "c1")

        assert index.lookup("a@mit.edu") == "c1"
        assert index.lookup("b@mit.edu") is None
        assert len(index) == 1

    def test_unbind_only_by_current_holder(self):
        """Test a stale connection cannot remove a newer binding."""
        index = IdentityIndex()
        index.bind("a@mit.edu", "c1")
        index.bind("a@mit.edu", "c2")

        assert index.unbind("a@mit.edu", "c1") is False
        assert index.lookup("a@mit.edu") == "c2"
        assert index.unbind("a@mit.edu", "c2") is True
        assert index.lookup("a@mit.edu") is None

    def test_items_snapshot(self):
        """Test items returns every binding."""
        index = IdentityIndex()
        index.bind("a@mit.edu", "c1")
        index.bind("b@mit.edu", "c2")

        assert sorted(index.items()) == [("a@mit.edu", "c1"), ("b@mit.edu", "c2")]
