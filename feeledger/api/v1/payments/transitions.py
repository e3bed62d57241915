"""
Payment status guard table.

pending -> received              staff, admin
pending | received -> confirmed  admin
pending | received -> rejected   admin
confirmed, rejected              terminal

Every transition attempt is decided by one lookup in TRANSITION_GUARDS.
"""

from typing import Dict, FrozenSet, List, Tuple

from feeledger.core.enums import PaymentStatus, UserRole
from feeledger.core.exceptions import Forbidden, InvalidTransition

TERMINAL_STATUSES: FrozenSet[PaymentStatus] = frozenset(
    {PaymentStatus.CONFIRMED, PaymentStatus.REJECTED}
)

# Statuses whose transition stamps confirmed_by / confirmed_at.
REVIEW_STATUSES: FrozenSet[PaymentStatus] = TERMINAL_STATUSES

TRANSITION_GUARDS: Dict[Tuple[PaymentStatus, PaymentStatus], FrozenSet[UserRole]] = {
    (PaymentStatus.PENDING, PaymentStatus.RECEIVED): frozenset({UserRole.STAFF, UserRole.ADMIN}),
    (PaymentStatus.PENDING, PaymentStatus.CONFIRMED): frozenset({UserRole.ADMIN}),
    (PaymentStatus.RECEIVED, PaymentStatus.CONFIRMED): frozenset({UserRole.ADMIN}),
    (PaymentStatus.PENDING, PaymentStatus.REJECTED): frozenset({UserRole.ADMIN}),
    (PaymentStatus.RECEIVED, PaymentStatus.REJECTED): frozenset({UserRole.ADMIN}),
}


def check_transition(
    current: PaymentStatus,
    target: PaymentStatus,
    role: UserRole,
) -> None:
    """Raise InvalidTransition for an illegal from/to pair, Forbidden for a disallowed role."""
    if current in TERMINAL_STATUSES:
        raise InvalidTransition(
            f"Payment is already {current.value}; no further status changes are allowed"
        )
    allowed_roles = TRANSITION_GUARDS.get((current, target))
    if allowed_roles is None:
        raise InvalidTransition(
            f"Invalid status transition: {current.value} -> {target.value}"
        )
    if role not in allowed_roles:
        raise Forbidden(
            f"Role '{role.value}' cannot move a payment from {current.value} to {target.value}"
        )


def allowed_targets(current: PaymentStatus, role: UserRole) -> List[PaymentStatus]:
    """Statuses the given role may move a payment to from `current`."""
    return [
        target
        for (source, target), roles in TRANSITION_GUARDS.items()
        if source == current and role in roles
    ]
