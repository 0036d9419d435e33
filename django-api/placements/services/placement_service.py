"""Placement service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Check the actor's capability once, at entry
- Validate domain invariants through the lifecycle modules
- Persist with compare-and-swap, then publish domain events
- Return domain models or raise domain errors

Notification is best-effort: a failing publisher never undoes a saved
transition.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable

from placements.domain import application_lifecycle, offer_lifecycle
from placements.domain.actors import Actor, Capability, require
from placements.domain.drive import (
    DrivePhase,
    RegistrationStatus,
    change_status,
    compute_statistics,
    current_phase,
    days_until_drive,
    registration_status,
)
from placements.domain.eligibility import EligibilityResult, evaluate
from placements.domain.errors import (
    AlreadyAppliedError,
    ApplicationNotFoundError,
    CandidateNotFoundError,
    ConcurrentModificationError,
    DriveNotFoundError,
    InvalidIdError,
    InvalidTransitionError,
    NotEligibleError,
    OfferExpiredError,
    OfferNotFoundError,
    StudentNotFoundError,
)
from placements.domain.events import ApplicationStatusChanged, OfferStatusChanged
from placements.domain.models import (
    Application,
    ApplicationStatus,
    CandidateEntry,
    Drive,
    DriveStatistics,
    DriveStatus,
    Offer,
    OfferStatus,
    RoundStatus,
    StudentSnapshot,
    VerificationStatus,
)
from placements.domain.value_objects import (
    ApplicationId,
    DriveId,
    FitScore,
    Money,
    OfferId,
    StudentId,
)
from placements.stores.interfaces import PlacementStore

logger = logging.getLogger(__name__)

# Statuses a reviewer may set directly; offer statuses follow offer actions.
REVIEW_TARGETS = frozenset(
    {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.SELECTED,
    }
)

DEFAULT_OFFER_VALIDITY = timedelta(hours=72)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_id(id_type, value):
    if isinstance(value, id_type):
        return value
    try:
        return id_type.from_string(value)
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdError() from None


@dataclass(frozen=True)
class DriveOverview:
    drive: Drive
    phase: DrivePhase
    registration_status: RegistrationStatus
    days_until_drive: int


@dataclass(frozen=True)
class StudentSummary:
    student_id: StudentId
    total_applications: int
    total_offers: int
    is_placed: bool
    verification_status: VerificationStatus


class PlacementService:
    """Service for the placement drive, application and offer lifecycles."""

    def __init__(
        self,
        store: PlacementStore,
        clock: Callable[[], datetime] = utc_now,
        publisher: Callable[[object], None] | None = None,
        offer_validity: timedelta = DEFAULT_OFFER_VALIDITY,
    ) -> None:
        self._store = store
        self._clock = clock
        self._publisher = publisher
        self._offer_validity = offer_validity

    # -- loading -----------------------------------------------------------

    def _student(self, student_id) -> StudentSnapshot:
        student_id = _parse_id(StudentId, student_id)
        student = self._store.find_student(student_id)
        if student is None:
            raise StudentNotFoundError(str(student_id))
        return student

    def _drive(self, drive_id) -> Drive:
        drive_id = _parse_id(DriveId, drive_id)
        drive = self._store.find_drive(drive_id)
        if drive is None:
            raise DriveNotFoundError(str(drive_id))
        return drive

    def _company_of(self, drive_id: DriveId) -> str:
        return self._drive(drive_id).company

    def _application(self, application_id) -> Application:
        application_id = _parse_id(ApplicationId, application_id)
        application = self._store.find_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(str(application_id))
        return application

    def _offer(self, offer_id) -> Offer:
        offer_id = _parse_id(OfferId, offer_id)
        offer = self._store.find_offer(offer_id)
        if offer is None:
            raise OfferNotFoundError(str(offer_id))
        return offer

    # -- publishing --------------------------------------------------------

    def _publish(self, event) -> None:
        if self._publisher is None:
            return
        try:
            self._publisher(event)
        except Exception:
            logger.exception("Failed to publish %s", type(event).__name__)

    def _application_changed(
        self,
        application: Application,
        from_status: ApplicationStatus | None,
        actor: Actor,
    ) -> None:
        logger.info(
            "Application %s moved %s -> %s by %s",
            application.id,
            from_status.value if from_status else None,
            application.status.value,
            actor.role.value,
        )
        self._publish(
            ApplicationStatusChanged(
                application_id=application.id,
                student_id=application.student_id,
                drive_id=application.drive_id,
                from_status=from_status,
                to_status=application.status,
                actor=actor,
                at=application.updated_at,
            )
        )

    def _offer_changed(
        self, offer: Offer, from_status: OfferStatus | None, actor: Actor, now: datetime
    ) -> None:
        logger.info(
            "Offer %s moved %s -> %s",
            offer.id,
            from_status.value if from_status else None,
            offer.status.value,
        )
        self._publish(
            OfferStatusChanged(
                offer_id=offer.id,
                application_id=offer.application_id,
                student_id=offer.student_id,
                drive_id=offer.drive_id,
                from_status=from_status,
                to_status=offer.status,
                actor=actor,
                at=now,
            )
        )

    def _save_transition(
        self, before: Application, after: Application, actor: Actor
    ) -> Application:
        self._store.save_application(after, expected_prior_status=before.status)
        self._application_changed(after, before.status, actor)
        return after

    # -- drives ------------------------------------------------------------

    def create_drive(self, actor: Actor, drive: Drive) -> Drive:
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        if drive.status is not DriveStatus.DRAFT:
            raise InvalidTransitionError(DriveStatus.DRAFT, drive.status)
        self._store.save_drive(drive, expected_prior_status=None)
        logger.info("Drive %s created by %s", drive.id, actor.role.value)
        return drive

    def get_drive(self, actor: Actor, drive_id) -> Drive:
        require(actor, Capability.VIEW)
        return self._drive(drive_id)

    def list_drives(self, actor: Actor, status: DriveStatus | None = None) -> list[Drive]:
        require(actor, Capability.VIEW)
        return self._store.list_drives(status)

    def drive_overview(self, actor: Actor, drive_id) -> DriveOverview:
        """Return the drive with its phase and registration status as of now."""
        require(actor, Capability.VIEW)
        drive = self._drive(drive_id)
        now = self._clock()
        return DriveOverview(
            drive=drive,
            phase=current_phase(drive.timeline, now),
            registration_status=registration_status(drive, now),
            days_until_drive=days_until_drive(drive.timeline, now),
        )

    def _change_drive_status(self, actor: Actor, drive_id, to_status: DriveStatus) -> Drive:
        drive = self._drive(drive_id)
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        updated = change_status(drive, to_status, self._clock())
        self._store.save_drive(updated, expected_prior_status=drive.status)
        logger.info(
            "Drive %s moved %s -> %s", drive.id, drive.status.value, to_status.value
        )
        return updated

    def publish_drive(self, actor: Actor, drive_id) -> Drive:
        return self._change_drive_status(actor, drive_id, DriveStatus.ACTIVE)

    def close_drive(self, actor: Actor, drive_id) -> Drive:
        return self._change_drive_status(actor, drive_id, DriveStatus.CLOSED)

    def complete_drive(self, actor: Actor, drive_id) -> Drive:
        return self._change_drive_status(actor, drive_id, DriveStatus.COMPLETED)

    def cancel_drive(self, actor: Actor, drive_id) -> Drive:
        return self._change_drive_status(actor, drive_id, DriveStatus.CANCELLED)

    def drive_statistics(self, actor: Actor, drive_id) -> DriveStatistics:
        """Recompute the drive's funnel counts from its collections."""
        require(actor, Capability.VIEW)
        drive = self._drive(drive_id)
        return compute_statistics(
            self._store.list_applications(drive_id=drive.id),
            self._store.list_offers(drive_id=drive.id),
            self._store.list_candidates(drive.id),
        )

    # -- roster ------------------------------------------------------------

    def build_roster(self, actor: Actor, drive_id) -> list[CandidateEntry]:
        """Add every eligible student of the drive's university to its roster.

        Existing entries, with their invitations and annotations, are kept.
        """
        drive = self._drive(drive_id)
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        today = self._clock().date()
        on_roster = {c.student_id for c in self._store.list_candidates(drive.id)}
        added = 0
        for student in self._store.list_students(drive.university):
            if student.id in on_roster:
                continue
            if evaluate(student, drive.criteria, on=today).eligible:
                self._store.save_candidate(
                    CandidateEntry(drive_id=drive.id, student_id=student.id)
                )
                added += 1
        logger.info("Roster for drive %s gained %d candidates", drive.id, added)
        return self._store.list_candidates(drive.id)

    def _candidate(self, drive: Drive, student_id: StudentId) -> CandidateEntry | None:
        return next(
            (c for c in self._store.list_candidates(drive.id) if c.student_id == student_id),
            None,
        )

    def add_candidate(self, actor: Actor, drive_id, student_id) -> CandidateEntry:
        """Manually place a student on the roster, bypassing eligibility."""
        drive = self._drive(drive_id)
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        student = self._student(student_id)
        candidate = self._candidate(drive, student.id) or CandidateEntry(
            drive_id=drive.id, student_id=student.id
        )
        candidate = replace(candidate, manually_added=True)
        self._store.save_candidate(candidate)
        return candidate

    def invite_candidate(self, actor: Actor, drive_id, student_id) -> CandidateEntry:
        """Invite a student to apply; students not on the roster must be eligible."""
        drive = self._drive(drive_id)
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        student = self._student(student_id)
        now = self._clock()
        candidate = self._candidate(drive, student.id)
        if candidate is None:
            result = evaluate(student, drive.criteria, on=now.date())
            if not result.eligible:
                raise NotEligibleError(result.failed_rules)
            candidate = CandidateEntry(drive_id=drive.id, student_id=student.id)
        if not candidate.invited:
            candidate = replace(candidate, invited=True, invited_at=now)
            self._store.save_candidate(candidate)
        return candidate

    def annotate_candidate(
        self,
        actor: Actor,
        drive_id,
        student_id,
        fit_score: int,
        reasons: Iterable[str] = (),
    ) -> CandidateEntry:
        """Attach advisory AI output to a roster entry. Changes no status."""
        require(actor, Capability.ANNOTATE)
        drive = self._drive(drive_id)
        student = self._student(student_id)
        candidate = self._candidate(drive, student.id)
        if candidate is None:
            raise CandidateNotFoundError(str(drive.id), str(student.id))
        candidate = replace(
            candidate,
            fit_score=FitScore(fit_score),
            ai_reasons=tuple(reasons),
            annotated_at=self._clock(),
        )
        self._store.save_candidate(candidate)
        return candidate

    def list_candidates(self, actor: Actor, drive_id) -> list[CandidateEntry]:
        drive = self._drive(drive_id)
        require(actor, Capability.MANAGE_DRIVE, company=drive.company)
        return self._store.list_candidates(drive.id)

    # -- students ----------------------------------------------------------

    def check_eligibility(self, actor: Actor, student_id, drive_id) -> EligibilityResult:
        require(actor, Capability.VIEW, owner=student_id)
        student = self._student(student_id)
        drive = self._drive(drive_id)
        return evaluate(student, drive.criteria, on=self._clock().date())

    def eligible_drives(self, actor: Actor, student_id) -> list[Drive]:
        """Active drives of the student's university they can apply to now."""
        require(actor, Capability.VIEW, owner=student_id)
        student = self._student(student_id)
        now = self._clock()
        return [
            drive
            for drive in self._store.list_drives(DriveStatus.ACTIVE)
            if drive.university == student.university
            and registration_status(drive, now) is RegistrationStatus.OPEN
            and evaluate(student, drive.criteria, on=now.date()).eligible
        ]

    def student_summary(self, actor: Actor, student_id) -> StudentSummary:
        require(actor, Capability.VIEW, owner=student_id)
        student = self._student(student_id)
        return StudentSummary(
            student_id=student.id,
            total_applications=len(self._store.list_applications(student_id=student.id)),
            total_offers=len(self._store.list_offers(student_id=student.id)),
            is_placed=student.is_placed,
            verification_status=student.verification_status,
        )

    # -- applications ------------------------------------------------------

    def apply(self, actor: Actor, drive_id, cover_letter: str = "") -> Application:
        """Create the acting student's application to a drive.

        Raises:
            AlreadyAppliedError: If the student already applied to the drive.
            RegistrationClosedError: If registration is not open.
            NotEligibleError: If the student fails the drive's criteria.
        """
        require(actor, Capability.APPLY)
        student = self._student(actor.id)
        drive = self._drive(drive_id)
        if self._store.find_application_for(student.id, drive.id) is not None:
            raise AlreadyAppliedError(str(drive.id))

        application = application_lifecycle.open_application(
            student, drive, actor, self._clock(), cover_letter=cover_letter
        )
        self._store.save_application(application, expected_prior_status=None)
        self._application_changed(application, None, actor)
        return application

    def get_application(self, actor: Actor, application_id) -> Application:
        application = self._application(application_id)
        require(actor, Capability.VIEW, owner=application.student_id)
        return application

    def list_applications(
        self, actor: Actor, drive_id=None, student_id=None
    ) -> list[Application]:
        if student_id is not None:
            require(actor, Capability.VIEW, owner=student_id)
            student_id = _parse_id(StudentId, student_id)
        else:
            require(actor, Capability.REVIEW)
        if drive_id is not None:
            drive_id = _parse_id(DriveId, drive_id)
        return self._store.list_applications(drive_id=drive_id, student_id=student_id)

    def advance_application(
        self, actor: Actor, application_id, to_status: ApplicationStatus
    ) -> Application:
        """Move an application through review: under review, shortlist, reject, select."""
        application = self._application(application_id)
        require(actor, Capability.REVIEW, company=self._company_of(application.drive_id))
        if to_status not in REVIEW_TARGETS:
            raise InvalidTransitionError(application.status, to_status)
        updated = application_lifecycle.transition(application, to_status, actor, self._clock())
        return self._save_transition(application, updated, actor)

    def withdraw_application(
        self, actor: Actor, application_id, reason: str = ""
    ) -> Application:
        application = self._application(application_id)
        require(actor, Capability.WITHDRAW, owner=application.student_id)
        updated = application_lifecycle.withdraw(application, reason, actor, self._clock())
        return self._save_transition(application, updated, actor)

    def record_round(
        self,
        actor: Actor,
        application_id,
        order: int,
        outcome: RoundStatus,
        notes: str = "",
    ) -> Application:
        application = self._application(application_id)
        require(actor, Capability.REVIEW, company=self._company_of(application.drive_id))
        updated = application_lifecycle.record_round_outcome(
            application, order, outcome, self._clock(), notes=notes
        )
        self._store.save_application(updated, expected_prior_status=application.status)
        return updated

    # -- offers ------------------------------------------------------------

    def _settle_expiry(self, offer: Offer, now: datetime) -> Offer:
        """Persist ``expired`` for a pending offer past its deadline."""
        resolved = offer_lifecycle.resolve_expiry(offer, now)
        if resolved is offer:
            return offer
        self._store.save_offer(resolved, expected_prior_status=OfferStatus.PENDING)
        self._offer_changed(resolved, OfferStatus.PENDING, Actor.system(), now)
        return resolved

    def _settled_offers(self, application: Application, now: datetime) -> list[Offer]:
        return [
            self._settle_expiry(offer, now)
            for offer in self._store.list_offers(application_id=application.id)
        ]

    def issue_offer(
        self,
        actor: Actor,
        application_id,
        compensation: Money,
        expires_at: datetime | None = None,
    ) -> Offer:
        """Issue a pending offer for a selected application.

        Raises:
            DuplicatePendingOfferError: If a pending offer already exists.
            ApplicationNotSelectedError: If the application is not selected.
        """
        application = self._application(application_id)
        require(actor, Capability.ISSUE_OFFER, company=self._company_of(application.drive_id))
        now = self._clock()
        offer, issued = offer_lifecycle.issue_offer(
            application,
            self._settled_offers(application, now),
            compensation,
            actor,
            now,
            expires_at or now + self._offer_validity,
        )
        self._store.save_offer_and_application(
            offer, None, issued, expected_application_status=application.status
        )
        self._application_changed(issued, application.status, actor)
        self._offer_changed(offer, None, actor, now)
        return offer

    def get_offer(self, actor: Actor, offer_id) -> Offer:
        """Return an offer, resolving it to expired if its deadline passed."""
        offer = self._offer(offer_id)
        require(actor, Capability.VIEW, owner=offer.student_id)
        try:
            return self._settle_expiry(offer, self._clock())
        except ConcurrentModificationError:
            return self._offer(offer.id)

    def list_offers(self, actor: Actor, student_id=None, drive_id=None) -> list[Offer]:
        if student_id is not None:
            require(actor, Capability.VIEW, owner=student_id)
            student_id = _parse_id(StudentId, student_id)
        else:
            require(actor, Capability.REVIEW)
        if drive_id is not None:
            drive_id = _parse_id(DriveId, drive_id)
        now = self._clock()
        return [
            offer_lifecycle.resolve_expiry(offer, now)
            for offer in self._store.list_offers(drive_id=drive_id, student_id=student_id)
        ]

    def respond_to_offer(
        self,
        actor: Actor,
        offer_id,
        response: OfferStatus,
        message: str = "",
        counter: Decimal | None = None,
    ) -> Offer:
        """Accept, reject or counter a pending offer as its student.

        Raises:
            OfferExpiredError: If the offer is past expiry or already expired;
                a still-pending offer is stored as expired first.
            InvalidTransitionError: If the offer is no longer pending.
            ConcurrentModificationError: If another response won the race.
        """
        offer = self._offer(offer_id)
        require(actor, Capability.RESPOND_TO_OFFER, owner=offer.student_id)
        now = self._clock()
        try:
            updated = offer_lifecycle.respond(
                offer,
                response,
                now,
                message,
                Money(counter, offer.compensation.currency) if counter is not None else None,
            )
        except OfferExpiredError as exc:
            if offer.is_pending:
                try:
                    self._store.save_offer(exc.offer, expected_prior_status=OfferStatus.PENDING)
                except ConcurrentModificationError:
                    # Past the deadline the only competing write is the expiry itself.
                    raise exc from None
                self._offer_changed(exc.offer, OfferStatus.PENDING, Actor.system(), now)
            raise

        outcome = offer_lifecycle.APPLICATION_OUTCOMES.get(updated.status)
        if outcome is None:
            self._store.save_offer(updated, expected_prior_status=OfferStatus.PENDING)
            self._offer_changed(updated, OfferStatus.PENDING, actor, now)
        else:
            application = self._application(offer.application_id)
            # A pending offer implies offer_issued; anything else was answered meanwhile.
            if application.status is not ApplicationStatus.OFFER_ISSUED:
                raise ConcurrentModificationError(
                    "offer", str(offer.id), OfferStatus.PENDING.value
                )
            answered = application_lifecycle.transition(application, outcome, actor, now)
            self._store.save_offer_and_application(
                updated,
                OfferStatus.PENDING,
                answered,
                expected_application_status=application.status,
            )
            self._offer_changed(updated, OfferStatus.PENDING, actor, now)
            self._application_changed(answered, application.status, actor)
        if updated.status is OfferStatus.ACCEPTED:
            self._store.record_placement(updated.student_id, updated)
            logger.info("Student %s placed through offer %s", updated.student_id, updated.id)
        return updated

    def revise_offer(
        self,
        actor: Actor,
        offer_id,
        compensation: Money,
        expires_at: datetime | None = None,
    ) -> Offer:
        """Issue a fresh offer superseding a countered or expired one."""
        offer = self._offer(offer_id)
        require(actor, Capability.ISSUE_OFFER, company=self._company_of(offer.drive_id))
        now = self._clock()
        offer = self._settle_expiry(offer, now)
        application = self._application(offer.application_id)
        revised = offer_lifecycle.revise_offer(
            application,
            offer,
            self._settled_offers(application, now),
            compensation,
            now,
            expires_at or now + self._offer_validity,
        )
        self._store.save_offer(revised, expected_prior_status=None)
        self._offer_changed(revised, None, actor, now)
        return revised

    def close_negotiation(self, actor: Actor, offer_id) -> Application:
        """Decline a countered or expired offer; the application ends declined."""
        offer = self._offer(offer_id)
        require(actor, Capability.ISSUE_OFFER, company=self._company_of(offer.drive_id))
        now = self._clock()
        offer = self._settle_expiry(offer, now)
        application = self._application(offer.application_id)
        closed = offer_lifecycle.close_negotiation(
            application, offer, self._settled_offers(application, now), actor, now
        )
        return self._save_transition(application, closed, actor)

    def expire_stale_offers(self) -> int:
        """Resolve every pending offer past its deadline; returns how many.

        Optional sweep: reads and responses resolve expiry on their own.
        """
        now = self._clock()
        expired = 0
        for offer in self._store.list_offers():
            if not offer_lifecycle.is_expired(offer, now):
                continue
            try:
                self._settle_expiry(offer, now)
            except ConcurrentModificationError:
                logger.info("Offer %s changed during sweep; skipped", offer.id)
                continue
            expired += 1
        return expired
