"""Authorization gate.

Decides whether a session context may use a capability. The gate never
denies while the context is still resolving; it answers `pending` instead so
callers can wait rather than redirect.
"""

from dataclasses import dataclass
from enum import Enum

from app.core.exceptions import DenyReason
from app.core.session_state import SessionContext
from app.services.session_resolver import ResolvedUser


class Capability(str, Enum):
    ADMIN_ONLY = "admin_only"
    PROFESSIONAL_ONLY = "professional_only"
    ANY_AUTHENTICATED = "any_authenticated"


class GateOutcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    PENDING = "pending"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    reason: DenyReason | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome == GateOutcome.ALLOW


ALLOW = GateDecision(GateOutcome.ALLOW)
PENDING = GateDecision(GateOutcome.PENDING)


def _deny(reason: DenyReason) -> GateDecision:
    return GateDecision(GateOutcome.DENY, reason)


def authorize_user(user: ResolvedUser | None, capability: Capability) -> GateDecision:
    """Evaluate a capability against an already resolved user."""
    if user is None:
        return _deny(DenyReason.UNAUTHENTICATED)

    if capability == Capability.ANY_AUTHENTICATED:
        return ALLOW

    if capability == Capability.ADMIN_ONLY:
        return ALLOW if user.is_admin else _deny(DenyReason.WRONG_ROLE)

    # PROFESSIONAL_ONLY
    if not user.is_professional:
        return _deny(DenyReason.WRONG_ROLE)
    if user.is_blocked:
        return _deny(DenyReason.BLOCKED)
    if not user.is_approved:
        return _deny(DenyReason.NOT_YET_APPROVED)
    return ALLOW


def authorize(context: SessionContext, capability: Capability) -> GateDecision:
    """Evaluate a capability against a session context."""
    if context.is_resolving:
        return PENDING
    return authorize_user(context.user, capability)
