"""Domain error codes for the placements module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    APPLICATION_NOT_SELECTED = "APPLICATION_NOT_SELECTED"
    DUPLICATE_PENDING_OFFER = "DUPLICATE_PENDING_OFFER"
    OFFER_EXPIRED = "OFFER_EXPIRED"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_ID = "INVALID_ID"
    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    DRIVE_NOT_FOUND = "DRIVE_NOT_FOUND"
    APPLICATION_NOT_FOUND = "APPLICATION_NOT_FOUND"
    OFFER_NOT_FOUND = "OFFER_NOT_FOUND"
    CANDIDATE_NOT_FOUND = "CANDIDATE_NOT_FOUND"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotEligibleError(DomainError):
    """Raised when a student fails one or more eligibility rules."""

    def __init__(self, failed_rules: tuple) -> None:
        super().__init__(
            code=ErrorCode.NOT_ELIGIBLE,
            message="You do not meet the eligibility criteria for this drive",
        )
        self.failed_rules = failed_rules


class RegistrationClosedError(DomainError):
    """Raised when applying outside the drive's registration window."""

    def __init__(self, registration_status: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_CLOSED,
            message="Applications are no longer being accepted for this drive",
        )
        self.registration_status = registration_status


class InvalidTransitionError(DomainError):
    """Raised when a status change is not allowed by the lifecycle."""

    def __init__(self, from_status: Enum, to_status: Enum) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot move from {from_status.value} to {to_status.value}",
        )
        self.from_status = from_status
        self.to_status = to_status


class ApplicationNotSelectedError(DomainError):
    """Raised when an offer is requested for an application not in selected."""

    def __init__(self, status: Enum) -> None:
        super().__init__(
            code=ErrorCode.APPLICATION_NOT_SELECTED,
            message="Offers can only be issued to selected applications",
        )
        self.status = status


class DuplicatePendingOfferError(DomainError):
    """Raised when an application already has a pending offer."""

    def __init__(self, application_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_PENDING_OFFER,
            message="A pending offer already exists for this application",
        )
        self.application_id = application_id


class OfferExpiredError(DomainError):
    """Raised when acting on an offer past its expiry.

    ``offer`` holds the offer resolved to expired, ready to be persisted.
    """

    def __init__(self, offer) -> None:
        super().__init__(
            code=ErrorCode.OFFER_EXPIRED,
            message="This offer has expired",
        )
        self.offer = offer


class ConcurrentModificationError(DomainError):
    """Raised when a compare-and-swap save finds an unexpected status."""

    def __init__(self, entity: str, entity_id: str, expected_status: str | None) -> None:
        super().__init__(
            code=ErrorCode.CONCURRENT_MODIFICATION,
            message=f"The {entity} was modified by another request",
        )
        self.entity = entity
        self.entity_id = entity_id
        self.expected_status = expected_status


class AlreadyAppliedError(DomainError):
    """Raised when a student applies twice to the same drive."""

    def __init__(self, drive_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_APPLIED,
            message="You have already applied to this drive",
        )
        self.drive_id = drive_id


class PermissionDeniedError(DomainError):
    """Raised when an actor lacks the capability for an operation."""

    def __init__(self, capability: str) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message="You are not allowed to perform this action",
        )
        self.capability = capability


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message="Invalid ID format",
        )


class StudentNotFoundError(DomainError):
    """Raised when a student is not found."""

    def __init__(self, student_id: str) -> None:
        super().__init__(
            code=ErrorCode.STUDENT_NOT_FOUND,
            message="Student not found",
        )
        self.student_id = student_id


class DriveNotFoundError(DomainError):
    """Raised when a placement drive is not found."""

    def __init__(self, drive_id: str) -> None:
        super().__init__(
            code=ErrorCode.DRIVE_NOT_FOUND,
            message="Placement drive not found",
        )
        self.drive_id = drive_id


class ApplicationNotFoundError(DomainError):
    """Raised when an application is not found."""

    def __init__(self, application_id: str) -> None:
        super().__init__(
            code=ErrorCode.APPLICATION_NOT_FOUND,
            message="Application not found",
        )
        self.application_id = application_id


class OfferNotFoundError(DomainError):
    """Raised when an offer is not found."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            code=ErrorCode.OFFER_NOT_FOUND,
            message="Offer not found",
        )
        self.offer_id = offer_id


class CandidateNotFoundError(DomainError):
    """Raised when a student is not on a drive's roster."""

    def __init__(self, drive_id: str, student_id: str) -> None:
        super().__init__(
            code=ErrorCode.CANDIDATE_NOT_FOUND,
            message="Student is not on this drive's roster",
        )
        self.drive_id = drive_id
        self.student_id = student_id
