"""In-process implementation of the PlacementStore.

Backs the domain and service test suites, and local runs without a
database. A single lock makes every compare-and-swap atomic.
"""

import threading
from dataclasses import replace

from placements.domain import (
    Application,
    ApplicationId,
    ApplicationStatus,
    CandidateEntry,
    Drive,
    DriveId,
    DriveStatus,
    Offer,
    OfferId,
    OfferStatus,
    StudentId,
    StudentSnapshot,
)
from placements.domain.errors import (
    AlreadyAppliedError,
    ConcurrentModificationError,
    DuplicatePendingOfferError,
)
from placements.stores.interfaces import PlacementStore


def _check_expected(entity: str, entity_id, current, expected) -> None:
    current_status = current.status if current is not None else None
    if current_status is not expected:
        raise ConcurrentModificationError(
            entity, str(entity_id), expected.value if expected else None
        )


class InMemoryPlacementStore(PlacementStore):
    """Dictionary-backed store with lock-guarded compare-and-swap."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._students: dict[StudentId, StudentSnapshot] = {}
        self._drives: dict[DriveId, Drive] = {}
        self._applications: dict[ApplicationId, Application] = {}
        self._offers: dict[OfferId, Offer] = {}
        self._candidates: dict[tuple[DriveId, StudentId], CandidateEntry] = {}
        self.placements: dict[StudentId, OfferId] = {}

    def add_student(self, student: StudentSnapshot) -> None:
        with self._lock:
            self._students[student.id] = student

    def find_student(self, student_id: StudentId) -> StudentSnapshot | None:
        return self._students.get(student_id)

    def list_students(self, university: str) -> list[StudentSnapshot]:
        return [s for s in self._students.values() if s.university == university]

    def find_drive(self, drive_id: DriveId) -> Drive | None:
        return self._drives.get(drive_id)

    def list_drives(self, status: DriveStatus | None = None) -> list[Drive]:
        drives = [d for d in self._drives.values() if status is None or d.status is status]
        return sorted(drives, key=lambda d: d.timeline.registration_end)

    def save_drive(self, drive: Drive, expected_prior_status: DriveStatus | None) -> None:
        with self._lock:
            _check_expected("drive", drive.id, self._drives.get(drive.id), expected_prior_status)
            self._drives[drive.id] = drive

    def find_application(self, application_id: ApplicationId) -> Application | None:
        return self._applications.get(application_id)

    def find_application_for(
        self, student_id: StudentId, drive_id: DriveId
    ) -> Application | None:
        return next(
            (
                a
                for a in self._applications.values()
                if a.student_id == student_id and a.drive_id == drive_id
            ),
            None,
        )

    def list_applications(
        self, drive_id: DriveId | None = None, student_id: StudentId | None = None
    ) -> list[Application]:
        applications = [
            a
            for a in self._applications.values()
            if (drive_id is None or a.drive_id == drive_id)
            and (student_id is None or a.student_id == student_id)
        ]
        return sorted(applications, key=lambda a: a.applied_at)

    def _check_application(
        self, application: Application, expected_prior_status: ApplicationStatus | None
    ) -> None:
        if expected_prior_status is None and any(
            a.student_id == application.student_id and a.drive_id == application.drive_id
            for a in self._applications.values()
        ):
            raise AlreadyAppliedError(str(application.drive_id))
        current = self._applications.get(application.id)
        _check_expected("application", application.id, current, expected_prior_status)
        if current is not None and current.version != application.version - 1:
            raise ConcurrentModificationError(
                "application", str(application.id), expected_prior_status.value
            )

    def save_application(
        self, application: Application, expected_prior_status: ApplicationStatus | None
    ) -> None:
        with self._lock:
            self._check_application(application, expected_prior_status)
            self._applications[application.id] = application

    def find_offer(self, offer_id: OfferId) -> Offer | None:
        return self._offers.get(offer_id)

    def list_offers(
        self,
        drive_id: DriveId | None = None,
        application_id: ApplicationId | None = None,
        student_id: StudentId | None = None,
    ) -> list[Offer]:
        offers = [
            o
            for o in self._offers.values()
            if (drive_id is None or o.drive_id == drive_id)
            and (application_id is None or o.application_id == application_id)
            and (student_id is None or o.student_id == student_id)
        ]
        return sorted(offers, key=lambda o: o.issued_at, reverse=True)

    def _check_offer(self, offer: Offer, expected_prior_status: OfferStatus | None) -> None:
        _check_expected("offer", offer.id, self._offers.get(offer.id), expected_prior_status)
        if offer.is_pending and any(
            o.is_pending and o.application_id == offer.application_id and o.id != offer.id
            for o in self._offers.values()
        ):
            raise DuplicatePendingOfferError(str(offer.application_id))

    def save_offer(self, offer: Offer, expected_prior_status: OfferStatus | None) -> None:
        with self._lock:
            self._check_offer(offer, expected_prior_status)
            self._offers[offer.id] = offer

    def save_offer_and_application(
        self,
        offer: Offer,
        expected_offer_status: OfferStatus | None,
        application: Application,
        expected_application_status: ApplicationStatus,
    ) -> None:
        with self._lock:
            self._check_application(application, expected_application_status)
            self._check_offer(offer, expected_offer_status)
            self._applications[application.id] = application
            self._offers[offer.id] = offer

    def list_candidates(self, drive_id: DriveId) -> list[CandidateEntry]:
        return [c for (d, _), c in self._candidates.items() if d == drive_id]

    def save_candidate(self, candidate: CandidateEntry) -> None:
        with self._lock:
            self._candidates[(candidate.drive_id, candidate.student_id)] = candidate

    def record_placement(self, student_id: StudentId, offer: Offer) -> None:
        with self._lock:
            student = self._students.get(student_id)
            if student is not None:
                self._students[student_id] = replace(student, is_placed=True)
            self.placements[student_id] = offer.id
