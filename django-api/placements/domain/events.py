"""Domain events published after a successful state change."""

from dataclasses import dataclass
from datetime import datetime

from placements.domain.actors import Actor
from placements.domain.models import ApplicationStatus, OfferStatus
from placements.domain.value_objects import ApplicationId, DriveId, OfferId, StudentId


@dataclass(frozen=True)
class ApplicationStatusChanged:
    application_id: ApplicationId
    student_id: StudentId
    drive_id: DriveId
    from_status: ApplicationStatus | None
    to_status: ApplicationStatus
    actor: Actor
    at: datetime


@dataclass(frozen=True)
class OfferStatusChanged:
    offer_id: OfferId
    application_id: ApplicationId
    student_id: StudentId
    drive_id: DriveId
    from_status: OfferStatus | None
    to_status: OfferStatus
    actor: Actor
    at: datetime
