"""Status machine for a single application.

Transitions only move forward along TRANSITIONS. Withdrawal is the one
sideways exit and is terminal. Every transition returns a new Application
with one more history entry; history is never rewritten.
"""

from dataclasses import replace
from datetime import datetime

from placements.domain.actors import Actor
from placements.domain.drive import RegistrationStatus, registration_status
from placements.domain.eligibility import evaluate
from placements.domain.errors import (
    InvalidTransitionError,
    NotEligibleError,
    RegistrationClosedError,
)
from placements.domain.models import (
    Application,
    ApplicationStatus,
    Drive,
    HistoryEntry,
    RoundOutcome,
    RoundStatus,
    StudentSnapshot,
    WithdrawalRecord,
)
from placements.domain.value_objects import ApplicationId

S = ApplicationStatus

TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    S.APPLIED: frozenset({S.UNDER_REVIEW, S.REJECTED, S.WITHDRAWN}),
    S.UNDER_REVIEW: frozenset({S.SHORTLISTED, S.REJECTED, S.WITHDRAWN}),
    S.SHORTLISTED: frozenset({S.SELECTED, S.REJECTED, S.WITHDRAWN}),
    S.SELECTED: frozenset({S.OFFER_ISSUED, S.WITHDRAWN}),
    S.OFFER_ISSUED: frozenset({S.OFFER_ACCEPTED, S.OFFER_DECLINED}),
    S.OFFER_ACCEPTED: frozenset(),
    S.OFFER_DECLINED: frozenset(),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Round outcomes can only be recorded while the selection process is running.
ROUND_RECORDING_STATUSES = frozenset({S.UNDER_REVIEW, S.SHORTLISTED})


def can_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    return to_status in TRANSITIONS[from_status]


def is_valid_walk(statuses: list[ApplicationStatus]) -> bool:
    """Check that a recorded status sequence follows the transition table."""
    if not statuses or statuses[0] is not S.APPLIED:
        return False
    return all(can_transition(a, b) for a, b in zip(statuses, statuses[1:]))


def open_application(
    student: StudentSnapshot,
    drive: Drive,
    actor: Actor,
    now: datetime,
    cover_letter: str = "",
) -> Application:
    """Create an application in ``applied``.

    Raises:
        RegistrationClosedError: If the drive's registration is not open.
        NotEligibleError: If the student fails any eligibility rule.
    """
    status = registration_status(drive, now)
    if status is not RegistrationStatus.OPEN:
        raise RegistrationClosedError(status.value)

    result = evaluate(student, drive.criteria, on=now.date())
    if not result.eligible:
        raise NotEligibleError(result.failed_rules)

    rounds = tuple(
        RoundOutcome(round_type=r.round_type, order=r.order)
        for r in sorted(drive.selection_rounds, key=lambda r: r.order)
    )
    return Application(
        id=ApplicationId.new(),
        student_id=student.id,
        drive_id=drive.id,
        status=S.APPLIED,
        history=(HistoryEntry(status=S.APPLIED, at=now, actor=actor),),
        rounds=rounds,
        cover_letter=cover_letter,
    )


def transition(
    application: Application,
    to_status: ApplicationStatus,
    actor: Actor,
    now: datetime,
) -> Application:
    """Move an application to ``to_status``.

    Withdrawal must go through ``withdraw`` so the record is captured.

    Raises:
        InvalidTransitionError: If the move is not in the transition table.
    """
    if to_status is S.WITHDRAWN or not can_transition(application.status, to_status):
        raise InvalidTransitionError(application.status, to_status)
    return replace(
        application,
        status=to_status,
        history=application.history + (HistoryEntry(status=to_status, at=now, actor=actor),),
        version=application.version + 1,
    )


def withdraw(
    application: Application, reason: str, actor: Actor, now: datetime
) -> Application:
    """Withdraw an application, recording who withdrew it and why."""
    if not can_transition(application.status, S.WITHDRAWN):
        raise InvalidTransitionError(application.status, S.WITHDRAWN)
    return replace(
        application,
        status=S.WITHDRAWN,
        history=application.history + (HistoryEntry(status=S.WITHDRAWN, at=now, actor=actor),),
        version=application.version + 1,
        withdrawal=WithdrawalRecord(
            reason=reason or f"{actor.role.value.capitalize()} withdrawal",
            at=now,
            initiator=actor.role,
        ),
    )


def record_round_outcome(
    application: Application,
    order: int,
    outcome: RoundStatus,
    now: datetime,
    notes: str = "",
) -> Application:
    """Record the result of one selection round. Status is left unchanged.

    Raises:
        InvalidTransitionError: If the application is not in review.
        ValueError: If the round does not exist or the outcome is ``scheduled``.
    """
    if application.status not in ROUND_RECORDING_STATUSES:
        raise InvalidTransitionError(application.status, application.status)
    if outcome is RoundStatus.SCHEDULED:
        raise ValueError("A recorded outcome cannot be 'scheduled'")
    if not any(r.order == order for r in application.rounds):
        raise ValueError(f"Application has no round {order}")
    rounds = tuple(
        replace(r, status=outcome, recorded_at=now, notes=notes) if r.order == order else r
        for r in application.rounds
    )
    return replace(application, rounds=rounds, version=application.version + 1)
