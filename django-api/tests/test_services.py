"""Unit tests for PlacementService.

These test orchestration, permissions, persistence and domain error mapping
against the in-memory store with an injected clock.
Run with: pytest tests/test_services.py -v
"""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from placements.domain import offer_lifecycle
from placements.domain.actors import Actor, Role
from placements.domain.application_lifecycle import record_round_outcome
from placements.domain.drive import DrivePhase, RegistrationStatus
from placements.domain.errors import (
    AlreadyAppliedError,
    ApplicationNotFoundError,
    CandidateNotFoundError,
    ConcurrentModificationError,
    DriveNotFoundError,
    DuplicatePendingOfferError,
    ErrorCode,
    InvalidIdError,
    InvalidTransitionError,
    NotEligibleError,
    OfferExpiredError,
    PermissionDeniedError,
    StudentNotFoundError,
)
from placements.domain.events import ApplicationStatusChanged, OfferStatusChanged
from placements.domain.models import (
    ApplicationStatus,
    DriveStatus,
    OfferStatus,
    RoundStatus,
)
from placements.domain.value_objects import Cgpa, DriveId, Money
from placements.services import PlacementService
from placements.stores import InMemoryPlacementStore
from tests.factories import (
    COMPANY,
    SALARY,
    T0,
    UNIVERSITY,
    make_drive,
    make_student,
    student_actor,
)

S = ApplicationStatus


def _select(service, application):
    for status in (S.UNDER_REVIEW, S.SHORTLISTED, S.SELECTED):
        application = service.advance_application(COMPANY, application.id, status)
    return application


@pytest.fixture
def application(service, student, drive):
    return service.apply(student_actor(student), drive.id)


@pytest.fixture
def offer(service, application):
    _select(service, application)
    return service.issue_offer(COMPANY, application.id, SALARY)


class TestDrives:
    """Tests for drive management."""

    def test_create_drive_stores_draft(self, service, store):
        drive = make_drive(status=DriveStatus.DRAFT)
        service.create_drive(UNIVERSITY, drive)
        assert store.find_drive(drive.id) == drive

    def test_create_drive_refuses_non_draft(self, service):
        with pytest.raises(InvalidTransitionError):
            service.create_drive(UNIVERSITY, make_drive(status=DriveStatus.ACTIVE))

    def test_student_cannot_create_drives(self, service, student):
        with pytest.raises(PermissionDeniedError):
            service.create_drive(student_actor(student), make_drive(status=DriveStatus.DRAFT))

    def test_publish_then_overview(self, service):
        drive = service.create_drive(UNIVERSITY, make_drive(status=DriveStatus.DRAFT))
        service.publish_drive(UNIVERSITY, drive.id)
        overview = service.drive_overview(COMPANY, str(drive.id))
        assert overview.drive.status is DriveStatus.ACTIVE
        assert overview.phase is DrivePhase.REGISTRATION
        assert overview.registration_status is RegistrationStatus.OPEN
        assert overview.days_until_drive == 10

    def test_get_drive_with_malformed_id(self, service):
        """get_drive raises InvalidIdError for malformed UUID."""
        with pytest.raises(InvalidIdError):
            service.get_drive(COMPANY, "not-a-uuid")

    def test_get_drive_not_found(self, service):
        """get_drive raises DriveNotFoundError when store returns None."""
        with pytest.raises(DriveNotFoundError):
            service.get_drive(COMPANY, str(DriveId.new()))

    def test_list_drives_filters_by_status(self, service, drive):
        service.create_drive(UNIVERSITY, make_drive(status=DriveStatus.DRAFT))
        assert service.list_drives(COMPANY, DriveStatus.ACTIVE) == [drive]


class TestApply:
    """Tests for applying to a drive."""

    def test_apply_persists_and_publishes(self, service, store, publisher, application):
        assert store.find_application(application.id) == application
        event = publisher.events[-1]
        assert isinstance(event, ApplicationStatusChanged)
        assert event.from_status is None
        assert event.to_status is S.APPLIED

    def test_apply_twice_is_refused(self, service, student, drive, application):
        with pytest.raises(AlreadyAppliedError):
            service.apply(student_actor(student), drive.id)

    def test_only_students_apply(self, service, drive):
        with pytest.raises(PermissionDeniedError):
            service.apply(COMPANY, drive.id)

    def test_unknown_student_cannot_apply(self, service, drive):
        with pytest.raises(StudentNotFoundError):
            service.apply(student_actor(make_student()), drive.id)

    def test_ineligible_student_gets_failed_rules(self, service, store, drive):
        student = make_student(cgpa=Cgpa(6.99))
        store.add_student(student)
        with pytest.raises(NotEligibleError):
            service.apply(student_actor(student), drive.id)
        assert store.list_applications(drive_id=drive.id) == []


class TestApplications:
    """Tests for review, withdrawal and rounds."""

    def test_advance_through_review(self, service, publisher, application):
        selected = _select(service, application)
        assert selected.status is S.SELECTED
        assert [e.to_status for e in publisher.events[-3:]] == [
            S.UNDER_REVIEW,
            S.SHORTLISTED,
            S.SELECTED,
        ]

    def test_offer_statuses_cannot_be_set_directly(self, service, application):
        _select(service, application)
        with pytest.raises(InvalidTransitionError):
            service.advance_application(COMPANY, application.id, S.OFFER_ISSUED)

    def test_students_cannot_review(self, service, student, application):
        with pytest.raises(PermissionDeniedError):
            service.advance_application(student_actor(student), application.id, S.UNDER_REVIEW)

    def test_other_company_cannot_review_or_offer(self, service, store, application):
        rival = Actor(role=Role.COMPANY, id="globex")
        with pytest.raises(PermissionDeniedError):
            service.advance_application(rival, application.id, S.UNDER_REVIEW)
        _select(service, application)
        with pytest.raises(PermissionDeniedError):
            service.issue_offer(rival, application.id, SALARY)
        assert store.find_application(application.id).status is S.SELECTED

    def test_other_company_cannot_manage_drive(self, service, store, drive):
        rival = Actor(role=Role.COMPANY, id="globex")
        with pytest.raises(PermissionDeniedError):
            service.close_drive(rival, drive.id)
        assert service.close_drive(COMPANY, drive.id).status is DriveStatus.CLOSED

    def test_withdraw_by_owner(self, service, student, application):
        withdrawn = service.withdraw_application(
            student_actor(student), application.id, "Higher studies"
        )
        assert withdrawn.status is S.WITHDRAWN
        assert withdrawn.withdrawal.initiator is Role.STUDENT

    def test_withdraw_by_another_student_is_denied(self, service, application):
        with pytest.raises(PermissionDeniedError):
            service.withdraw_application(student_actor(make_student()), application.id)

    def test_record_round(self, service, application):
        service.advance_application(COMPANY, application.id, S.UNDER_REVIEW)
        updated = service.record_round(COMPANY, application.id, 1, RoundStatus.CLEARED)
        assert updated.rounds[0].status is RoundStatus.CLEARED
        assert updated.status is S.UNDER_REVIEW

    def test_get_application_not_found(self, service):
        with pytest.raises(ApplicationNotFoundError):
            service.get_application(COMPANY, "2f0c9d7e-5a0b-4bb8-9a57-3a4c1b0f6e21")

    def test_student_lists_only_own_applications(self, service, student, application):
        assert service.list_applications(student_actor(student), student_id=student.id) == [
            application
        ]
        with pytest.raises(PermissionDeniedError):
            service.list_applications(student_actor(make_student()), student_id=student.id)


class TestOffers:
    """Tests for the offer lifecycle through the service."""

    def test_issue_offer_moves_application(self, service, store, offer):
        assert offer.status is OfferStatus.PENDING
        assert store.find_application(offer.application_id).status is S.OFFER_ISSUED
        assert offer.expires_at == offer.issued_at + timedelta(hours=72)

    def test_second_offer_is_refused(self, service, offer):
        with pytest.raises(DuplicatePendingOfferError):
            service.issue_offer(COMPANY, offer.application_id, SALARY)

    def test_accept_places_student(self, service, store, student, offer):
        accepted = service.respond_to_offer(
            student_actor(student), offer.id, OfferStatus.ACCEPTED
        )
        assert accepted.status is OfferStatus.ACCEPTED
        assert store.find_application(offer.application_id).status is S.OFFER_ACCEPTED
        assert store.find_student(student.id).is_placed
        assert store.placements[student.id] == offer.id

    def test_reject_declines_application(self, service, store, student, offer):
        service.respond_to_offer(student_actor(student), offer.id, OfferStatus.REJECTED)
        assert store.find_application(offer.application_id).status is S.OFFER_DECLINED
        assert not store.find_student(student.id).is_placed

    def test_other_student_cannot_respond(self, service, offer):
        with pytest.raises(PermissionDeniedError):
            service.respond_to_offer(
                student_actor(make_student()), offer.id, OfferStatus.ACCEPTED
            )

    def test_late_response_expires_offer(self, service, store, clock, student, offer):
        """Accepting at T+73h raises OfferExpired and stores the offer as expired."""
        clock.advance(hours=73)
        with pytest.raises(OfferExpiredError):
            service.respond_to_offer(student_actor(student), offer.id, OfferStatus.ACCEPTED)
        assert store.find_offer(offer.id).status is OfferStatus.EXPIRED
        assert store.find_application(offer.application_id).status is S.OFFER_ISSUED

    def test_reading_a_stale_offer_expires_it(self, service, store, clock, student, offer):
        clock.advance(hours=80)
        assert service.get_offer(student_actor(student), offer.id).status is OfferStatus.EXPIRED
        assert store.find_offer(offer.id).status is OfferStatus.EXPIRED

    def test_accept_after_viewing_an_expired_offer(self, service, store, clock, student, offer):
        actor = student_actor(student)
        clock.advance(hours=73)
        service.get_offer(actor, offer.id)
        with pytest.raises(OfferExpiredError):
            service.respond_to_offer(actor, offer.id, OfferStatus.ACCEPTED)
        assert store.find_offer(offer.id).status is OfferStatus.EXPIRED
        assert store.find_application(offer.application_id).status is S.OFFER_ISSUED

    def test_accept_after_sweep_reports_expiry(self, service, store, clock, publisher, student, offer):
        clock.advance(hours=73)
        assert service.expire_stale_offers() == 1
        published = len(publisher.events)
        with pytest.raises(OfferExpiredError):
            service.respond_to_offer(student_actor(student), offer.id, OfferStatus.ACCEPTED)
        assert len(publisher.events) == published
        assert store.find_offer(offer.id).status is OfferStatus.EXPIRED

    def test_counter_then_revise(self, service, store, student, offer):
        countered = service.respond_to_offer(
            student_actor(student),
            offer.id,
            OfferStatus.COUNTERED,
            "Relocation support?",
            counter=Decimal("1400000"),
        )
        assert countered.counter_proposal.compensation == Money(Decimal("1400000"))
        assert store.find_application(offer.application_id).status is S.OFFER_ISSUED

        revised = service.revise_offer(COMPANY, offer.id, Money(Decimal("1300000")))
        assert revised.supersedes == offer.id
        accepted = service.respond_to_offer(
            student_actor(student), revised.id, OfferStatus.ACCEPTED
        )
        assert accepted.status is OfferStatus.ACCEPTED
        assert store.find_application(offer.application_id).status is S.OFFER_ACCEPTED

    def test_close_negotiation_after_counter(self, service, student, offer):
        service.respond_to_offer(
            student_actor(student), offer.id, OfferStatus.COUNTERED, counter=Decimal("1")
        )
        closed = service.close_negotiation(COMPANY, offer.id)
        assert closed.status is S.OFFER_DECLINED

    def test_sweep_expires_stale_offers(self, service, store, clock, offer):
        clock.advance(hours=72)
        assert service.expire_stale_offers() == 0
        clock.advance(seconds=1)
        assert service.expire_stale_offers() == 1
        assert store.find_offer(offer.id).status is OfferStatus.EXPIRED

    def test_offer_events_are_published(self, service, publisher, student, offer):
        service.respond_to_offer(student_actor(student), offer.id, OfferStatus.ACCEPTED)
        offer_events = [e for e in publisher.events if isinstance(e, OfferStatusChanged)]
        assert [(e.from_status, e.to_status) for e in offer_events] == [
            (None, OfferStatus.PENDING),
            (OfferStatus.PENDING, OfferStatus.ACCEPTED),
        ]


class BarrierStore(InMemoryPlacementStore):
    """Holds offer reads until both racing requests have loaded the offer."""

    def __init__(self) -> None:
        super().__init__()
        self.barrier: threading.Barrier | None = None

    def find_offer(self, offer_id):
        offer = super().find_offer(offer_id)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return offer


class HiddenOfferStore(InMemoryPlacementStore):
    """Lists no offers, as if a competing issue had not been read yet."""

    def list_offers(self, drive_id=None, application_id=None, student_id=None):
        return []


class TestConcurrency:
    """Tests for compare-and-swap under racing requests."""

    def test_concurrent_accept_and_reject_one_wins(self, clock, publisher):
        store = BarrierStore()
        service = PlacementService(store=store, clock=clock, publisher=publisher)
        student = make_student()
        store.add_student(student)
        drive = make_drive()
        store.save_drive(drive, expected_prior_status=None)
        actor = student_actor(student)
        application = _select(service, service.apply(actor, drive.id))
        offer = service.issue_offer(COMPANY, application.id, SALARY)

        results: dict[OfferStatus, object] = {}

        def respond(response: OfferStatus) -> None:
            try:
                results[response] = service.respond_to_offer(actor, offer.id, response)
            except Exception as exc:
                results[response] = exc

        store.barrier = threading.Barrier(2)
        threads = [
            threading.Thread(target=respond, args=(response,))
            for response in (OfferStatus.ACCEPTED, OfferStatus.REJECTED)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        store.barrier = None

        winners = [r for r in results.values() if not isinstance(r, Exception)]
        losers = [r for r in results.values() if isinstance(r, Exception)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert isinstance(losers[0], ConcurrentModificationError)

        stored = store.find_offer(offer.id)
        assert stored.status is winners[0].status
        expected = {
            OfferStatus.ACCEPTED: S.OFFER_ACCEPTED,
            OfferStatus.REJECTED: S.OFFER_DECLINED,
        }[stored.status]
        assert store.find_application(application.id).status is expected

    def test_stale_application_save_is_refused(self, store, service, application):
        reviewed = service.advance_application(COMPANY, application.id, S.UNDER_REVIEW)
        with pytest.raises(ConcurrentModificationError):
            store.save_application(reviewed, expected_prior_status=S.APPLIED)

    def test_concurrent_round_outcomes_do_not_overwrite(self, store, service, application):
        """Two reviewers load the same application and record different rounds."""
        service.advance_application(COMPANY, application.id, S.UNDER_REVIEW)
        first = store.find_application(application.id)
        second = store.find_application(application.id)
        store.save_application(
            record_round_outcome(first, 1, RoundStatus.CLEARED, T0),
            expected_prior_status=S.UNDER_REVIEW,
        )
        with pytest.raises(ConcurrentModificationError):
            store.save_application(
                record_round_outcome(second, 2, RoundStatus.CLEARED, T0),
                expected_prior_status=S.UNDER_REVIEW,
            )
        stored = store.find_application(application.id)
        assert [r.status for r in stored.rounds] == [RoundStatus.CLEARED, RoundStatus.SCHEDULED]

    def test_failed_offer_insert_leaves_application_selected(self, clock, publisher):
        """A rival pending offer the service did not see rolls back the whole issue."""
        store = HiddenOfferStore()
        service = PlacementService(store=store, clock=clock, publisher=publisher)
        student = make_student()
        store.add_student(student)
        drive = make_drive()
        store.save_drive(drive, expected_prior_status=None)
        application = _select(service, service.apply(student_actor(student), drive.id))
        rival, _ = offer_lifecycle.issue_offer(
            application, [], SALARY, COMPANY, T0, T0 + timedelta(hours=72)
        )
        store.save_offer(rival, expected_prior_status=None)
        published = len(publisher.events)

        with pytest.raises(DuplicatePendingOfferError):
            service.issue_offer(COMPANY, application.id, SALARY)

        assert store.find_application(application.id).status is S.SELECTED
        assert [o.id for o in InMemoryPlacementStore.list_offers(store)] == [rival.id]
        assert len(publisher.events) == published


class TestNotifications:
    """Tests for best-effort publishing."""

    def test_failing_publisher_does_not_undo_transition(self, store, clock, student, drive, caplog):
        def broken(event):
            raise RuntimeError("mail server down")

        service = PlacementService(store=store, clock=clock, publisher=broken)
        application = service.apply(student_actor(student), drive.id)
        assert store.find_application(application.id).status is S.APPLIED
        assert "Failed to publish ApplicationStatusChanged" in caplog.text


class TestRoster:
    """Tests for the eligible roster and AI annotations."""

    def test_build_roster_adds_only_eligible_students(self, service, store, student, drive):
        store.add_student(make_student(cgpa=Cgpa(5.0)))
        store.add_student(make_student(university="Other"))
        roster = service.build_roster(UNIVERSITY, drive.id)
        assert [c.student_id for c in roster] == [student.id]

    def test_build_roster_keeps_existing_entries(self, service, student, drive):
        service.build_roster(UNIVERSITY, drive.id)
        service.invite_candidate(UNIVERSITY, drive.id, student.id)
        roster = service.build_roster(UNIVERSITY, drive.id)
        assert roster[0].invited

    def test_invite_ineligible_student_off_roster_is_refused(self, service, store, drive):
        student = make_student(cgpa=Cgpa(4.0))
        store.add_student(student)
        with pytest.raises(NotEligibleError):
            service.invite_candidate(UNIVERSITY, drive.id, student.id)

    def test_manual_add_bypasses_eligibility(self, service, store, drive):
        student = make_student(cgpa=Cgpa(4.0))
        store.add_student(student)
        service.add_candidate(UNIVERSITY, drive.id, student.id)
        invited = service.invite_candidate(UNIVERSITY, drive.id, student.id)
        assert invited.manually_added and invited.invited

    def test_annotation_is_advisory(self, service, store, student, drive, application):
        service.build_roster(UNIVERSITY, drive.id)
        candidate = service.annotate_candidate(
            Actor.system(), drive.id, student.id, 87, ["Strong DSA"]
        )
        assert candidate.fit_score.value == 87
        assert candidate.ai_reasons == ("Strong DSA",)
        assert store.find_application(application.id).status is S.APPLIED

    def test_annotating_a_student_off_roster_fails(self, service, student, drive):
        with pytest.raises(CandidateNotFoundError) as excinfo:
            service.annotate_candidate(Actor.system(), drive.id, student.id, 50)
        assert excinfo.value.code is ErrorCode.CANDIDATE_NOT_FOUND

    def test_statistics_recomputed_on_read(self, service, student, drive, offer):
        service.build_roster(UNIVERSITY, drive.id)
        service.invite_candidate(UNIVERSITY, drive.id, student.id)
        before = service.drive_statistics(COMPANY, drive.id)
        assert (before.applied, before.selected, before.offers_issued) == (1, 1, 1)
        assert before.offers_accepted == 0
        service.respond_to_offer(student_actor(student), offer.id, OfferStatus.ACCEPTED)
        after = service.drive_statistics(COMPANY, drive.id)
        assert after.offers_accepted == 1
        assert after.invited == 1


class TestStudents:
    """Tests for student-facing reads."""

    def test_eligible_drives_lists_open_matching_drives(self, service, store, student, drive):
        store.save_drive(make_drive(status=DriveStatus.DRAFT), expected_prior_status=None)
        store.save_drive(make_drive(university="Other"), expected_prior_status=None)
        assert service.eligible_drives(student_actor(student), student.id) == [drive]

    def test_check_eligibility_for_own_record(self, service, student, drive):
        result = service.check_eligibility(student_actor(student), student.id, drive.id)
        assert result.eligible

    def test_summary_counts(self, service, student, offer):
        summary = service.student_summary(UNIVERSITY, student.id)
        assert (summary.total_applications, summary.total_offers) == (1, 1)
        assert not summary.is_placed
