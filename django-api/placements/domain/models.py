"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in placements/models.py (persistence layer).
Entities are immutable; lifecycle functions return updated copies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from placements.domain.actors import Actor, Role
from placements.domain.value_objects import (
    AgeLimit,
    ApplicationId,
    Backlogs,
    Cgpa,
    DriveId,
    FitScore,
    Money,
    OfferId,
    StudentId,
)


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class GenderPreference(Enum):
    ANY = "any"
    MALE = "male"
    FEMALE = "female"


class VerificationStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    LOCKED = "locked"


class DriveStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ApplicationStatus(Enum):
    APPLIED = "applied"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    SELECTED = "selected"
    OFFER_ISSUED = "offer_issued"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    WITHDRAWN = "withdrawn"


class RoundStatus(Enum):
    SCHEDULED = "scheduled"
    CLEARED = "cleared"
    NOT_CLEARED = "not_cleared"
    ABSENT = "absent"


class OfferStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"
    EXPIRED = "expired"


@dataclass(frozen=True)
class StudentSnapshot:
    """Read-only view of a student taken at decision time."""

    id: StudentId
    university: str
    department: str
    course: str
    batch: str
    cgpa: Cgpa
    backlogs: Backlogs
    gender: Gender
    verification_status: VerificationStatus = VerificationStatus.PENDING
    date_of_birth: date | None = None
    name: str = ""
    email: str = ""
    is_placed: bool = False


@dataclass(frozen=True)
class DriveCriteria:
    """Eligibility predicates for a drive.

    Empty sets place no restriction on that dimension.
    """

    minimum_cgpa: Cgpa
    allowed_backlogs: Backlogs = Backlogs()
    courses: frozenset[str] = frozenset()
    departments: frozenset[str] = frozenset()
    batches: frozenset[str] = frozenset()
    gender_preference: GenderPreference = GenderPreference.ANY
    age_limit: AgeLimit = AgeLimit()


@dataclass(frozen=True)
class DriveTimeline:
    registration_start: datetime
    registration_end: datetime
    drive_date: datetime
    result_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.registration_end < self.registration_start:
            raise ValueError("Registration cannot end before it starts")
        if self.drive_date < self.registration_end:
            raise ValueError("Drive date cannot precede the end of registration")
        if self.result_date is not None and self.result_date < self.drive_date:
            raise ValueError("Result date cannot precede the drive date")


@dataclass(frozen=True)
class SelectionRound:
    round_type: str
    order: int
    is_elimination: bool = False


@dataclass(frozen=True)
class Drive:
    """Domain representation of a placement Drive."""

    id: DriveId
    title: str
    company: str
    university: str
    role: str
    timeline: DriveTimeline
    criteria: DriveCriteria
    status: DriveStatus = DriveStatus.DRAFT
    selection_rounds: tuple[SelectionRound, ...] = ()


@dataclass(frozen=True)
class HistoryEntry:
    """One immutable step in an application's audit trail."""

    status: ApplicationStatus
    at: datetime
    actor: Actor


@dataclass(frozen=True)
class RoundOutcome:
    round_type: str
    order: int
    status: RoundStatus = RoundStatus.SCHEDULED
    recorded_at: datetime | None = None
    notes: str = ""


@dataclass(frozen=True)
class WithdrawalRecord:
    reason: str
    at: datetime
    initiator: Role


@dataclass(frozen=True)
class Application:
    """A student's entry into a drive's selection process."""

    id: ApplicationId
    student_id: StudentId
    drive_id: DriveId
    status: ApplicationStatus
    history: tuple[HistoryEntry, ...]
    rounds: tuple[RoundOutcome, ...] = ()
    withdrawal: WithdrawalRecord | None = None
    cover_letter: str = ""
    # Incremented by every change; stores compare it on save.
    version: int = 0

    @property
    def applied_at(self) -> datetime:
        return self.history[0].at

    @property
    def updated_at(self) -> datetime:
        return self.history[-1].at

    def has_reached(self, status: ApplicationStatus) -> bool:
        return any(entry.status is status for entry in self.history)


@dataclass(frozen=True)
class CounterProposal:
    compensation: Money
    message: str
    at: datetime


@dataclass(frozen=True)
class Offer:
    """A compensation proposal owned by a selected application."""

    id: OfferId
    application_id: ApplicationId
    student_id: StudentId
    drive_id: DriveId
    status: OfferStatus
    compensation: Money
    issued_at: datetime
    expires_at: datetime
    counter_proposal: CounterProposal | None = None
    response_message: str = ""
    responded_at: datetime | None = None
    supersedes: OfferId | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is OfferStatus.PENDING


@dataclass(frozen=True)
class CandidateEntry:
    """A student on a drive's eligible roster.

    ``fit_score`` and ``ai_reasons`` are advisory annotations only.
    """

    drive_id: DriveId
    student_id: StudentId
    invited: bool = False
    invited_at: datetime | None = None
    manually_added: bool = False
    fit_score: FitScore | None = None
    ai_reasons: tuple[str, ...] = field(default_factory=tuple)
    annotated_at: datetime | None = None


@dataclass(frozen=True)
class DriveStatistics:
    eligible: int = 0
    invited: int = 0
    applied: int = 0
    shortlisted: int = 0
    selected: int = 0
    offers_issued: int = 0
    offers_accepted: int = 0
