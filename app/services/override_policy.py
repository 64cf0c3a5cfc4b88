"""Override identities: exempt from trust decay, match caps, onboarding gating and circle rules.

The policy is a value passed into every job call instead of a module-level
list, so callers (and tests) decide which identities are exempt.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.config import get_settings


@dataclass(frozen=True)
class OverridePolicy:
    """Case-insensitive email allow-list."""

    emails: frozenset[str] = frozenset()

    @classmethod
    def from_emails(cls, emails: Iterable[str]) -> "OverridePolicy":
        return cls(frozenset(e.strip().lower() for e in emails if e and e.strip()))

    def is_exempt(self, email: str | None) -> bool:
        if not email:
            return False
        return email.strip().lower() in self.emails


EMPTY_POLICY = OverridePolicy()


def get_override_policy() -> OverridePolicy:
    """Policy built from OVERRIDE_EMAILS. Used at the API/script edge only."""
    return OverridePolicy.from_emails(get_settings().override_emails)
