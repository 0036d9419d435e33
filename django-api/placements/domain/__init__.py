from placements.domain.actors import Actor, Capability, Role
from placements.domain.models import (
    Application,
    ApplicationStatus,
    CandidateEntry,
    Drive,
    DriveCriteria,
    DriveStatistics,
    DriveStatus,
    DriveTimeline,
    Offer,
    OfferStatus,
    StudentSnapshot,
)
from placements.domain.value_objects import (
    ApplicationId,
    Backlogs,
    Cgpa,
    DriveId,
    FitScore,
    Money,
    OfferId,
    StudentId,
)

__all__ = [
    "Actor",
    "Capability",
    "Role",
    "Application",
    "ApplicationStatus",
    "CandidateEntry",
    "Drive",
    "DriveCriteria",
    "DriveStatistics",
    "DriveStatus",
    "DriveTimeline",
    "Offer",
    "OfferStatus",
    "StudentSnapshot",
    "ApplicationId",
    "Backlogs",
    "Cgpa",
    "DriveId",
    "FitScore",
    "Money",
    "OfferId",
    "StudentId",
]
