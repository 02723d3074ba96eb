"""SubmissionStatus state machine for the moderation lifecycle

State flow:
    pending → approved | rejected
    approved | rejected → pending   (revert)
"""

from enum import Enum
from typing import Dict, List

from .errors import AlreadyPending, InvalidTransition


class SubmissionStatus(str, Enum):
    """Moderation status of a pending submission"""
    PENDING = "pending"    # Awaiting review
    APPROVED = "approved"  # Published (Publication created)
    REJECTED = "rejected"  # Declined with a reason


# State transition rules
ALLOWED_TRANSITIONS: Dict[SubmissionStatus, List[SubmissionStatus]] = {
    SubmissionStatus.PENDING: [SubmissionStatus.APPROVED, SubmissionStatus.REJECTED],
    SubmissionStatus.APPROVED: [SubmissionStatus.PENDING],
    SubmissionStatus.REJECTED: [SubmissionStatus.PENDING],
}

# Statuses that block a new submission of the same file
ACTIVE_STATUSES = (SubmissionStatus.PENDING.value, SubmissionStatus.APPROVED.value)


def can_transition(from_status: SubmissionStatus, to_status: SubmissionStatus) -> bool:
    """Validate if status transition is allowed

    Example:
        >>> can_transition(SubmissionStatus.PENDING, SubmissionStatus.APPROVED)
        True
        >>> can_transition(SubmissionStatus.APPROVED, SubmissionStatus.REJECTED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def get_allowed_transitions(from_status: SubmissionStatus) -> List[SubmissionStatus]:
    """Get list of allowed transitions from current status"""
    return ALLOWED_TRANSITIONS.get(from_status, [])


def validate_transition(from_status: SubmissionStatus, to_status: SubmissionStatus) -> None:
    """Validate that a state transition is allowed.

    Args:
        from_status: Current submission status
        to_status: Target status

    Raises:
        AlreadyPending: If reverting a submission that is already pending
        InvalidTransition: For any other disallowed transition
    """
    if can_transition(from_status, to_status):
        return

    if from_status == SubmissionStatus.PENDING and to_status == SubmissionStatus.PENDING:
        raise AlreadyPending("Publication is already in pending status")

    raise InvalidTransition(
        f"Invalid transition: {from_status.value} -> {to_status.value}. "
        f"Allowed transitions from {from_status.value}: "
        f"{[s.value for s in get_allowed_transitions(from_status)]}",
        details={"current_status": from_status.value, "requested_status": to_status.value},
    )
