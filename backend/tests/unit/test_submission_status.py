"""Unit tests for the SubmissionStatus state machine"""

import pytest

from domain.publications.errors import AlreadyPending, InvalidTransition, StateError
from domain.publications.submission_status import (
    ACTIVE_STATUSES,
    SubmissionStatus,
    can_transition,
    get_allowed_transitions,
    validate_transition,
)


class TestSubmissionStatusStateMachine:
    """Test SubmissionStatus enum and state transition validation"""

    def test_status_values(self):
        assert SubmissionStatus.PENDING.value == "pending"
        assert SubmissionStatus.APPROVED.value == "approved"
        assert SubmissionStatus.REJECTED.value == "rejected"

    def test_pending_can_be_approved_or_rejected(self):
        assert can_transition(SubmissionStatus.PENDING, SubmissionStatus.APPROVED) is True
        assert can_transition(SubmissionStatus.PENDING, SubmissionStatus.REJECTED) is True

    def test_reviewed_submissions_can_only_revert(self):
        for status in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED):
            assert get_allowed_transitions(status) == [SubmissionStatus.PENDING]

    def test_approved_cannot_become_rejected(self):
        assert can_transition(SubmissionStatus.APPROVED, SubmissionStatus.REJECTED) is False
        assert can_transition(SubmissionStatus.REJECTED, SubmissionStatus.APPROVED) is False

    def test_active_statuses_block_duplicates(self):
        assert set(ACTIVE_STATUSES) == {"pending", "approved"}


class TestValidateTransition:

    def test_allowed_transition_passes(self):
        validate_transition(SubmissionStatus.PENDING, SubmissionStatus.APPROVED)

    def test_reverting_pending_raises_already_pending(self):
        with pytest.raises(AlreadyPending) as exc_info:
            validate_transition(SubmissionStatus.PENDING, SubmissionStatus.PENDING)

        assert exc_info.value.status_code == 400

    def test_approving_twice_raises_invalid_transition(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition(SubmissionStatus.APPROVED, SubmissionStatus.APPROVED)

        error = exc_info.value
        assert isinstance(error, StateError)
        assert error.status_code == 409
        assert error.details == {"current_status": "approved", "requested_status": "approved"}
