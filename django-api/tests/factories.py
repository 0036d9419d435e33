"""Builders for domain objects used across the test suite."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from placements.domain.actors import Actor, Role
from placements.domain.models import (
    Drive,
    DriveCriteria,
    DriveStatus,
    DriveTimeline,
    Gender,
    SelectionRound,
    StudentSnapshot,
    VerificationStatus,
)
from placements.domain.value_objects import Backlogs, Cgpa, DriveId, Money, StudentId

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

COMPANY = Actor(role=Role.COMPANY, id="acme")
UNIVERSITY = Actor(role=Role.UNIVERSITY, id="nitk")
SALARY = Money(Decimal("1200000.00"))


class FakeClock:
    """Settable clock injected into the service."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingPublisher:
    def __init__(self) -> None:
        self.events = []

    def __call__(self, event) -> None:
        self.events.append(event)


def make_student(**overrides) -> StudentSnapshot:
    fields = {
        "id": StudentId.new(),
        "university": "NITK",
        "department": "CSE",
        "course": "BTech",
        "batch": "2026",
        "cgpa": Cgpa(8.0),
        "backlogs": Backlogs(current=0, history=0),
        "gender": Gender.FEMALE,
        "verification_status": VerificationStatus.VERIFIED,
        "date_of_birth": date(2004, 5, 17),
        "name": "Asha Rao",
        "email": "asha@example.edu",
    }
    fields.update(overrides)
    return StudentSnapshot(**fields)


def make_timeline(start: datetime = T0, **overrides) -> DriveTimeline:
    """Registration open around ``start``, drive ten days later."""
    fields = {
        "registration_start": start - timedelta(days=1),
        "registration_end": start + timedelta(days=5),
        "drive_date": start + timedelta(days=10),
        "result_date": start + timedelta(days=15),
    }
    fields.update(overrides)
    return DriveTimeline(**fields)


def make_drive(**overrides) -> Drive:
    fields = {
        "id": DriveId.new(),
        "title": "Graduate Engineer 2026",
        "company": "acme",
        "university": "NITK",
        "role": "Software Engineer",
        "timeline": make_timeline(),
        "criteria": DriveCriteria(minimum_cgpa=Cgpa(7.0)),
        "status": DriveStatus.ACTIVE,
        "selection_rounds": (
            SelectionRound(round_type="aptitude", order=1, is_elimination=True),
            SelectionRound(round_type="interview", order=2),
        ),
    }
    fields.update(overrides)
    return Drive(**fields)


def student_actor(student: StudentSnapshot) -> Actor:
    return Actor(role=Role.STUDENT, id=str(student.id))


def create_student(**overrides):
    """Insert a Student row; needs the django_db mark."""
    from placements import models

    fields = {
        "name": "Asha Rao",
        "email": f"{StudentId.new()}@example.edu",
        "university": "NITK",
        "department": "CSE",
        "course": "BTech",
        "batch": "2026",
        "cgpa": 8.2,
        "gender": "female",
        "date_of_birth": date(2004, 5, 17),
        "verification_status": "verified",
    }
    fields.update(overrides)
    return models.Student.objects.create(**fields)
