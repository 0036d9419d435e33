"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from placements.domain.models import (
    ApplicationStatus,
    DriveStatus,
    Gender,
    GenderPreference,
    OfferStatus,
    VerificationStatus,
)


def _choices(enum) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").capitalize()) for member in enum]


class Student(models.Model):
    """Persistence model for the student fields the placement core reads."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    university = models.CharField(max_length=64)
    department = models.CharField(max_length=64)
    course = models.CharField(max_length=32)
    batch = models.CharField(max_length=16)
    cgpa = models.FloatField(validators=[MinValueValidator(0.0), MaxValueValidator(10.0)])
    current_backlogs = models.PositiveIntegerField(default=0)
    history_backlogs = models.PositiveIntegerField(default=0)
    gender = models.CharField(max_length=16, choices=_choices(Gender))
    date_of_birth = models.DateField(blank=True, null=True)
    verification_status = models.CharField(
        max_length=16,
        choices=_choices(VerificationStatus),
        default=VerificationStatus.PENDING.value,
    )
    is_placed = models.BooleanField(default=False)
    placed_offer = models.ForeignKey(
        "Offer", on_delete=models.SET_NULL, blank=True, null=True, related_name="+"
    )
    placement_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["university"], name="placements__univers_4c0f1e_idx"),
            models.Index(fields=["cgpa"], name="placements__cgpa_8d2b7a_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.batch})"


class Drive(models.Model):
    """Persistence model for placement drives."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    company = models.CharField(max_length=64)
    university = models.CharField(max_length=64)
    role = models.CharField(max_length=200)
    status = models.CharField(
        max_length=16, choices=_choices(DriveStatus), default=DriveStatus.DRAFT.value
    )
    registration_start = models.DateTimeField()
    registration_end = models.DateTimeField()
    drive_date = models.DateTimeField()
    result_date = models.DateTimeField(blank=True, null=True)
    minimum_cgpa = models.FloatField(
        validators=[MinValueValidator(0.0), MaxValueValidator(10.0)]
    )
    allowed_current_backlogs = models.PositiveIntegerField(default=0)
    allowed_history_backlogs = models.PositiveIntegerField(default=0)
    courses = models.JSONField(default=list, blank=True)
    departments = models.JSONField(default=list, blank=True)
    batches = models.JSONField(default=list, blank=True)
    gender_preference = models.CharField(
        max_length=8,
        choices=_choices(GenderPreference),
        default=GenderPreference.ANY.value,
    )
    minimum_age = models.PositiveIntegerField(blank=True, null=True)
    maximum_age = models.PositiveIntegerField(blank=True, null=True)
    selection_rounds = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["registration_end"]
        indexes = [
            models.Index(fields=["status"], name="placements__status_5e1a90_idx"),
            models.Index(
                fields=["university", "status"], name="placements__univers_b73c21_idx"
            ),
        ]

    def __str__(self) -> str:
        return self.title


class Candidate(models.Model):
    """Persistence model for a drive's eligible roster."""

    drive = models.ForeignKey(Drive, on_delete=models.CASCADE, related_name="candidates")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="+")
    invited = models.BooleanField(default=False)
    invited_at = models.DateTimeField(blank=True, null=True)
    manually_added = models.BooleanField(default=False)
    fit_score = models.PositiveSmallIntegerField(
        blank=True, null=True, validators=[MaxValueValidator(100)]
    )
    ai_reasons = models.JSONField(default=list, blank=True)
    annotated_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["drive", "student"], name="unique_candidate"),
        ]

    def __str__(self) -> str:
        return f"{self.student} @ {self.drive}"


class Application(models.Model):
    """Persistence model for applications. History lives in ApplicationEvent."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    drive = models.ForeignKey(Drive, on_delete=models.CASCADE, related_name="applications")
    student = models.ForeignKey(
        Student, on_delete=models.CASCADE, related_name="applications"
    )
    status = models.CharField(max_length=16, choices=_choices(ApplicationStatus))
    rounds = models.JSONField(default=list, blank=True)
    cover_letter = models.TextField(blank=True)
    withdrawal_reason = models.CharField(max_length=500, blank=True)
    withdrawn_at = models.DateTimeField(blank=True, null=True)
    withdrawn_by = models.CharField(max_length=16, blank=True)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["drive", "student"], name="unique_application"),
        ]
        indexes = [
            models.Index(fields=["drive", "status"], name="placements__drive_i_0a6d43_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.student} -> {self.drive} ({self.status})"


class ApplicationEvent(models.Model):
    """Append-only audit trail entry for an application."""

    application = models.ForeignKey(
        Application, on_delete=models.CASCADE, related_name="events"
    )
    sequence = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=_choices(ApplicationStatus))
    at = models.DateTimeField()
    actor_role = models.CharField(max_length=16)
    actor_id = models.CharField(max_length=64)

    class Meta:
        ordering = ["application", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=["application", "sequence"], name="unique_application_event"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.application_id} #{self.sequence} {self.status}"


class Offer(models.Model):
    """Persistence model for offers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    application = models.ForeignKey(
        Application, on_delete=models.CASCADE, related_name="offers"
    )
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="offers")
    drive = models.ForeignKey(Drive, on_delete=models.CASCADE, related_name="offers")
    status = models.CharField(max_length=16, choices=_choices(OfferStatus))
    compensation = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, default="INR")
    issued_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    counter_compensation = models.DecimalField(
        max_digits=14, decimal_places=2, blank=True, null=True
    )
    counter_message = models.TextField(blank=True)
    countered_at = models.DateTimeField(blank=True, null=True)
    response_message = models.TextField(blank=True)
    responded_at = models.DateTimeField(blank=True, null=True)
    supersedes = models.ForeignKey(
        "self", on_delete=models.SET_NULL, blank=True, null=True, related_name="+"
    )

    class Meta:
        ordering = ["-issued_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["application"],
                condition=Q(status="pending"),
                name="one_pending_offer_per_application",
            ),
        ]
        indexes = [
            models.Index(fields=["student", "status"], name="placements__student_3f9e62_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.student} - {self.compensation} {self.currency} ({self.status})"
