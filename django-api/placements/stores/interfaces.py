"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Saves of status-bearing
entities are compare-and-swap: they succeed only when the stored status
still equals ``expected_prior_status`` (``None`` means "must not exist yet"),
and raise ConcurrentModificationError otherwise. Applications also carry a
version that must be exactly one ahead of the stored row.
"""

from abc import ABC, abstractmethod

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


class PlacementStore(ABC):
    """Interface for placement persistence operations."""

    @abstractmethod
    def find_student(self, student_id: StudentId) -> StudentSnapshot | None:
        """Return a student snapshot by ID, or None if not found."""
        ...

    @abstractmethod
    def list_students(self, university: str) -> list[StudentSnapshot]:
        """Return all students of a university."""
        ...

    @abstractmethod
    def find_drive(self, drive_id: DriveId) -> Drive | None:
        """Return a drive by ID, or None if not found."""
        ...

    @abstractmethod
    def list_drives(self, status: DriveStatus | None = None) -> list[Drive]:
        """Return drives ordered by registration end ascending."""
        ...

    @abstractmethod
    def save_drive(self, drive: Drive, expected_prior_status: DriveStatus | None) -> None:
        """Insert or compare-and-swap a drive."""
        ...

    @abstractmethod
    def find_application(self, application_id: ApplicationId) -> Application | None:
        """Return an application by ID, or None if not found."""
        ...

    @abstractmethod
    def find_application_for(
        self, student_id: StudentId, drive_id: DriveId
    ) -> Application | None:
        """Return the student's application to a drive, if any."""
        ...

    @abstractmethod
    def list_applications(
        self, drive_id: DriveId | None = None, student_id: StudentId | None = None
    ) -> list[Application]:
        """Return applications, optionally filtered, oldest first."""
        ...

    @abstractmethod
    def save_application(
        self, application: Application, expected_prior_status: ApplicationStatus | None
    ) -> None:
        """Insert or compare-and-swap an application.

        Raises:
            AlreadyAppliedError: On insert, if the student already applied.
            ConcurrentModificationError: If the stored status differs.
        """
        ...

    @abstractmethod
    def find_offer(self, offer_id: OfferId) -> Offer | None:
        """Return an offer by ID, or None if not found."""
        ...

    @abstractmethod
    def list_offers(
        self,
        drive_id: DriveId | None = None,
        application_id: ApplicationId | None = None,
        student_id: StudentId | None = None,
    ) -> list[Offer]:
        """Return offers, optionally filtered, newest first."""
        ...

    @abstractmethod
    def save_offer(self, offer: Offer, expected_prior_status: OfferStatus | None) -> None:
        """Insert or compare-and-swap an offer.

        Raises:
            DuplicatePendingOfferError: If another pending offer exists for
                the same application.
            ConcurrentModificationError: If the stored status differs.
        """
        ...

    @abstractmethod
    def save_offer_and_application(
        self,
        offer: Offer,
        expected_offer_status: OfferStatus | None,
        application: Application,
        expected_application_status: ApplicationStatus,
    ) -> None:
        """Compare-and-swap an offer and its application as one unit.

        Either both writes land or neither does.

        Raises:
            DuplicatePendingOfferError: If another pending offer exists for
                the same application.
            ConcurrentModificationError: If either stored status differs.
        """
        ...

    @abstractmethod
    def list_candidates(self, drive_id: DriveId) -> list[CandidateEntry]:
        """Return the drive's eligible roster."""
        ...

    @abstractmethod
    def save_candidate(self, candidate: CandidateEntry) -> None:
        """Insert or replace a roster entry keyed by (drive, student)."""
        ...

    @abstractmethod
    def record_placement(self, student_id: StudentId, offer: Offer) -> None:
        """Mark the student as placed through an accepted offer."""
        ...
