"""Unit tests for the application status machine.

Run with: pytest tests/test_application_lifecycle.py -v
"""

from datetime import timedelta

import pytest

from placements.domain.application_lifecycle import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    can_transition,
    is_valid_walk,
    open_application,
    record_round_outcome,
    transition,
    withdraw,
)
from placements.domain.eligibility import EligibilityRule
from placements.domain.errors import (
    InvalidTransitionError,
    NotEligibleError,
    RegistrationClosedError,
)
from placements.domain.models import ApplicationStatus, DriveStatus, RoundStatus
from placements.domain.value_objects import Cgpa
from tests.factories import COMPANY, T0, make_drive, make_student, student_actor

S = ApplicationStatus


def _walk(application, *statuses, actor=COMPANY, now=T0):
    for step, status in enumerate(statuses, start=1):
        application = transition(application, status, actor, now + timedelta(minutes=step))
    return application


@pytest.fixture
def application():
    student = make_student()
    return open_application(student, make_drive(), student_actor(student), T0)


class TestOpenApplication:
    """Tests for creating an application."""

    def test_new_application_starts_applied_with_one_history_entry(self, application):
        assert application.status is S.APPLIED
        assert [entry.status for entry in application.history] == [S.APPLIED]
        assert application.applied_at == T0

    def test_rounds_are_seeded_from_the_drive(self, application):
        assert [(r.order, r.round_type, r.status) for r in application.rounds] == [
            (1, "aptitude", RoundStatus.SCHEDULED),
            (2, "interview", RoundStatus.SCHEDULED),
        ]

    def test_ineligible_student_is_rejected_with_failed_rules(self):
        student = make_student(cgpa=Cgpa(6.99))
        with pytest.raises(NotEligibleError) as excinfo:
            open_application(student, make_drive(), student_actor(student), T0)
        assert excinfo.value.failed_rules == (EligibilityRule.CGPA,)

    def test_registration_window_checked_before_eligibility(self):
        """An ineligible student applying late gets RegistrationClosed."""
        student = make_student(cgpa=Cgpa(5.0))
        late = T0 + timedelta(days=6)
        with pytest.raises(RegistrationClosedError):
            open_application(student, make_drive(), student_actor(student), late)

    def test_draft_drive_does_not_accept_applications(self):
        student = make_student()
        with pytest.raises(RegistrationClosedError) as excinfo:
            open_application(
                student, make_drive(status=DriveStatus.DRAFT), student_actor(student), T0
            )
        assert excinfo.value.registration_status == "not_started"


class TestTransitions:
    """Tests for the transition table."""

    def test_happy_path_reaches_offer_accepted(self, application):
        accepted = _walk(
            application,
            S.UNDER_REVIEW,
            S.SHORTLISTED,
            S.SELECTED,
            S.OFFER_ISSUED,
            S.OFFER_ACCEPTED,
        )
        assert accepted.status is S.OFFER_ACCEPTED
        assert is_valid_walk([entry.status for entry in accepted.history])

    def test_history_is_appended_not_rewritten(self, application):
        reviewed = transition(application, S.UNDER_REVIEW, COMPANY, T0 + timedelta(hours=1))
        assert reviewed.history[: len(application.history)] == application.history
        assert len(reviewed.history) == len(application.history) + 1
        assert application.status is S.APPLIED

    def test_skipping_a_stage_is_rejected(self, application):
        """applied -> selected is not in the table."""
        with pytest.raises(InvalidTransitionError) as excinfo:
            transition(application, S.SELECTED, COMPANY, T0)
        assert excinfo.value.from_status is S.APPLIED
        assert excinfo.value.to_status is S.SELECTED

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_statuses_have_no_exits(self, terminal):
        assert not any(can_transition(terminal, target) for target in S)

    def test_every_status_appears_in_the_table(self):
        assert set(TRANSITIONS) == set(S)

    def test_withdrawn_cannot_be_reached_through_transition(self, application):
        with pytest.raises(InvalidTransitionError):
            transition(application, S.WITHDRAWN, COMPANY, T0)

    @pytest.mark.parametrize(
        "statuses,valid",
        [
            ([S.APPLIED, S.UNDER_REVIEW, S.REJECTED], True),
            ([S.APPLIED, S.SHORTLISTED], False),
            ([S.UNDER_REVIEW], False),
            ([], False),
        ],
    )
    def test_is_valid_walk(self, statuses, valid):
        assert is_valid_walk(statuses) is valid


class TestWithdraw:
    """Tests for withdrawal."""

    def test_withdraw_records_reason_and_initiator(self, application):
        actor = student_actor(make_student())
        withdrawn = withdraw(application, "Accepted elsewhere", actor, T0 + timedelta(hours=2))
        assert withdrawn.status is S.WITHDRAWN
        assert withdrawn.withdrawal.reason == "Accepted elsewhere"
        assert withdrawn.withdrawal.initiator is actor.role
        assert withdrawn.history[-1].status is S.WITHDRAWN

    def test_withdraw_defaults_reason_from_role(self, application):
        withdrawn = withdraw(application, "", COMPANY, T0)
        assert withdrawn.withdrawal.reason == "Company withdrawal"

    def test_withdraw_not_allowed_once_offer_issued(self, application):
        issued = _walk(application, S.UNDER_REVIEW, S.SHORTLISTED, S.SELECTED, S.OFFER_ISSUED)
        with pytest.raises(InvalidTransitionError):
            withdraw(issued, "Changed my mind", COMPANY, T0 + timedelta(days=1))


class TestRoundOutcomes:
    """Tests for recording selection round results."""

    def test_outcome_recorded_without_status_change(self, application):
        reviewed = _walk(application, S.UNDER_REVIEW)
        recorded = record_round_outcome(
            reviewed, 1, RoundStatus.CLEARED, T0 + timedelta(days=1), notes="82/100"
        )
        assert recorded.status is S.UNDER_REVIEW
        assert recorded.rounds[0].status is RoundStatus.CLEARED
        assert recorded.rounds[0].notes == "82/100"
        assert recorded.rounds[1].status is RoundStatus.SCHEDULED
        assert recorded.history == reviewed.history

    def test_unknown_round_is_rejected(self, application):
        with pytest.raises(ValueError):
            record_round_outcome(_walk(application, S.UNDER_REVIEW), 9, RoundStatus.CLEARED, T0)

    def test_scheduled_is_not_an_outcome(self, application):
        with pytest.raises(ValueError):
            record_round_outcome(
                _walk(application, S.UNDER_REVIEW), 1, RoundStatus.SCHEDULED, T0
            )

    def test_outcomes_only_recorded_during_review(self, application):
        with pytest.raises(InvalidTransitionError):
            record_round_outcome(application, 1, RoundStatus.CLEARED, T0)
