"""
Unit tests for identity validation policies.
"""

import pytest

from pairchat.realtime.identity_policy import IdentityPolicy, SuffixIdentityPolicy


class TestSuffixIdentityPolicy:
    """Test cases for SuffixIdentityPolicy."""

    def setup_method(self):
        """Set up test fixtures."""
        self.policy = SuffixIdentityPolicy([".edu", ".ac.in", ".edu.in"])

    @pytest.mark.parametrize(
        "identity",
        ["alice@mit.edu", "bob@iitb.ac.in", "carol@du.edu.in", "Dave@Stanford.EDU"],
    )
    def test_accepts_configured_suffixes(self, identity):
        """Test identities ending in an accepted suffix pass, regardless of case."""
        assert self.policy.validate(identity) is True

    @pytest.mark.parametrize(
        "identity",
        ["alice@gmail.com", "bob@edu.com", "carol@mit.edu.org", "", "   "],
    )
    def test_rejects_other_identities(self, identity):
        """Test identities outside the accepted domains are rejected."""
        assert self.policy.validate(identity) is False

    @pytest.mark.parametrize("identity", [None, 42, ["a@mit.edu"], {"email": "a@mit.edu"}])
    def test_rejects_non_strings(self, identity):
        """Test non-string input is rejected without raising."""
        assert self.policy.validate(identity) is False

    def test_suffixes_are_normalized(self):
        """Test configured suffixes are lower-cased and blanks dropped."""
        policy = SuffixIdentityPolicy([".EDU", ""])

        assert policy.suffixes == (".edu",)
        assert policy.validate("x@college.edu")

    def test_requires_at_least_one_suffix(self):
        """Test an empty suffix list is refused."""
        with pytest.raises(ValueError):
            SuffixIdentityPolicy([])

    def test_description_lists_suffixes(self):
        """Test the description names every accepted suffix."""
        assert self.policy.description == ".edu, .ac.in, .edu.in"


class TestCustomIdentityPolicy:
    """Test cases for replacing the identity policy."""

    def test_subclass_only_needs_validate(self):
        """Test a custom policy works with the default description."""

        class AllowListPolicy(IdentityPolicy):
            def __init__(self, allowed):
                self.allowed = set(allowed)

            def validate(self, identity):
                return identity in self.allowed

        policy = AllowListPolicy({"only@uni.edu"})

        assert policy.validate("only@uni.edu")
        assert not policy.validate("other@uni.edu")
        assert policy.description == "AllowListPolicy"

    def test_abstract_policy_cannot_be_instantiated(self):
        """Test IdentityPolicy is abstract."""
        with pytest.raises(TypeError):
            IdentityPolicy()  # pylint: disable=abstract-class-instantiated
