"""
Identity validation policies.

The coordinator only asks "is this identity acceptable?"; which identities are
acceptable is a replaceable policy. The default accepts identities ending in
one of a fixed set of suffixes (institutional email domains).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


class IdentityPolicy(ABC):
    """Abstract predicate deciding whether an identity may register."""

    @abstractmethod
    def validate(self, identity: Any) -> bool:
        """Return True when the identity is acceptable. Must not raise."""

    @property
    def description(self) -> str:
        """Human readable summary used in error messages."""
        return self.__class__.__name__


class SuffixIdentityPolicy(IdentityPolicy):
    """
    Accept identities ending with one of the configured suffixes.

    Matching is case-insensitive. Non-strings and blank strings are rejected.
    """

    def __init__(self, suffixes: Iterable[str]):
        self.suffixes = tuple(s.lower() for s in suffixes if s)
        if not self.suffixes:
            raise ValueError("SuffixIdentityPolicy requires at least one suffix")

    def validate(self, identity: Any) -> bool:
        if not isinstance(identity, str) or not identity.strip():
            return False
        return identity.lower().endswith(self.suffixes)

    @property
    def description(self) -> str:
        return ", ".join(self.suffixes)
