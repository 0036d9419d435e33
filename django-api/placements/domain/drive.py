"""Drive aggregate: derived phase, drive status moves and roll-up statistics.

Phase and registration status are functions of the clock and are never
stored. Statistics are recomputed from the application and offer
collections on every read.
"""

import math
from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from placements.domain.errors import InvalidTransitionError
from placements.domain.models import (
    Application,
    ApplicationStatus,
    CandidateEntry,
    Drive,
    DriveStatistics,
    DriveStatus,
    DriveTimeline,
    Offer,
    OfferStatus,
)

DRIVE_DAY_LENGTH = timedelta(hours=24)


class DrivePhase(Enum):
    UPCOMING = "upcoming"
    REGISTRATION = "registration"
    PRE_DRIVE = "pre_drive"
    DRIVE_DAY = "drive_day"
    EVALUATION = "evaluation"
    COMPLETED = "completed"


class RegistrationStatus(Enum):
    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"


DRIVE_TRANSITIONS: dict[DriveStatus, frozenset[DriveStatus]] = {
    DriveStatus.DRAFT: frozenset({DriveStatus.ACTIVE, DriveStatus.CANCELLED}),
    DriveStatus.ACTIVE: frozenset(
        {DriveStatus.CLOSED, DriveStatus.COMPLETED, DriveStatus.CANCELLED}
    ),
    DriveStatus.CLOSED: frozenset({DriveStatus.COMPLETED, DriveStatus.CANCELLED}),
    DriveStatus.COMPLETED: frozenset(),
    DriveStatus.CANCELLED: frozenset(),
}


def current_phase(timeline: DriveTimeline, now: datetime) -> DrivePhase:
    if now < timeline.registration_start:
        return DrivePhase.UPCOMING
    if now <= timeline.registration_end:
        return DrivePhase.REGISTRATION
    if now < timeline.drive_date:
        return DrivePhase.PRE_DRIVE
    if now <= timeline.drive_date + DRIVE_DAY_LENGTH:
        return DrivePhase.DRIVE_DAY
    if timeline.result_date is not None and now < timeline.result_date:
        return DrivePhase.EVALUATION
    return DrivePhase.COMPLETED


def registration_status(drive: Drive, now: datetime) -> RegistrationStatus:
    """Registration is open only for an active drive inside its window."""
    if drive.status is DriveStatus.DRAFT:
        return RegistrationStatus.NOT_STARTED
    if drive.status is not DriveStatus.ACTIVE:
        return RegistrationStatus.CLOSED
    if now < drive.timeline.registration_start:
        return RegistrationStatus.NOT_STARTED
    if now > drive.timeline.registration_end:
        return RegistrationStatus.CLOSED
    return RegistrationStatus.OPEN


def days_until_drive(timeline: DriveTimeline, now: datetime) -> int:
    remaining = (timeline.drive_date - now) / timedelta(days=1)
    return math.ceil(remaining)


def change_status(drive: Drive, to_status: DriveStatus, now: datetime) -> Drive:
    """Move a drive along DRIVE_TRANSITIONS.

    Raises:
        InvalidTransitionError: If the move is not allowed, or the drive is
            completed before its results are due.
    """
    if to_status not in DRIVE_TRANSITIONS[drive.status]:
        raise InvalidTransitionError(drive.status, to_status)
    if (
        to_status is DriveStatus.COMPLETED
        and current_phase(drive.timeline, now) is not DrivePhase.COMPLETED
    ):
        raise InvalidTransitionError(drive.status, to_status)
    return replace(drive, status=to_status)


def _unique_by(items: Iterable, key) -> list:
    seen = {}
    for item in items:
        seen[key(item)] = item
    return list(seen.values())


def compute_statistics(
    applications: Iterable[Application],
    offers: Iterable[Offer],
    candidates: Iterable[CandidateEntry] = (),
) -> DriveStatistics:
    """Roll up a drive's funnel counts from its collections.

    Inputs are de-duplicated by identity so replaying the same snapshot
    cannot inflate any count.
    """
    applications = _unique_by(applications, lambda a: a.id)
    offers = _unique_by(offers, lambda o: o.id)
    candidates = _unique_by(candidates, lambda c: c.student_id)

    return DriveStatistics(
        eligible=len(candidates),
        invited=sum(1 for c in candidates if c.invited),
        applied=len(applications),
        shortlisted=sum(
            1 for a in applications if a.has_reached(ApplicationStatus.SHORTLISTED)
        ),
        selected=sum(1 for a in applications if a.has_reached(ApplicationStatus.SELECTED)),
        offers_issued=len({o.application_id for o in offers}),
        offers_accepted=sum(1 for o in offers if o.status is OfferStatus.ACCEPTED),
    )


def application_percentage(statistics: DriveStatistics) -> int:
    if statistics.invited == 0:
        return 0
    return round(statistics.applied / statistics.invited * 100)
