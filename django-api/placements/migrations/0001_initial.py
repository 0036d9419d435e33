import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

APPLICATION_STATUS_CHOICES = [
    ("applied", "Applied"),
    ("under_review", "Under review"),
    ("shortlisted", "Shortlisted"),
    ("rejected", "Rejected"),
    ("selected", "Selected"),
    ("offer_issued", "Offer issued"),
    ("offer_accepted", "Offer accepted"),
    ("offer_declined", "Offer declined"),
    ("withdrawn", "Withdrawn"),
]

OFFER_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("accepted", "Accepted"),
    ("rejected", "Rejected"),
    ("countered", "Countered"),
    ("expired", "Expired"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("university", models.CharField(max_length=64)),
                ("department", models.CharField(max_length=64)),
                ("course", models.CharField(max_length=32)),
                ("batch", models.CharField(max_length=16)),
                (
                    "cgpa",
                    models.FloatField(
                        validators=[
                            django.core.validators.MinValueValidator(0.0),
                            django.core.validators.MaxValueValidator(10.0),
                        ]
                    ),
                ),
                ("current_backlogs", models.PositiveIntegerField(default=0)),
                ("history_backlogs", models.PositiveIntegerField(default=0)),
                (
                    "gender",
                    models.CharField(
                        choices=[("male", "Male"), ("female", "Female"), ("other", "Other")],
                        max_length=16,
                    ),
                ),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                (
                    "verification_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("verified", "Verified"),
                            ("rejected", "Rejected"),
                            ("locked", "Locked"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("is_placed", models.BooleanField(default=False)),
                ("placement_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["university"], name="placements__univers_4c0f1e_idx"),
                    models.Index(fields=["cgpa"], name="placements__cgpa_8d2b7a_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Drive",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=200)),
                ("company", models.CharField(max_length=64)),
                ("university", models.CharField(max_length=64)),
                ("role", models.CharField(max_length=200)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("active", "Active"),
                            ("closed", "Closed"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("registration_start", models.DateTimeField()),
                ("registration_end", models.DateTimeField()),
                ("drive_date", models.DateTimeField()),
                ("result_date", models.DateTimeField(blank=True, null=True)),
                (
                    "minimum_cgpa",
                    models.FloatField(
                        validators=[
                            django.core.validators.MinValueValidator(0.0),
                            django.core.validators.MaxValueValidator(10.0),
                        ]
                    ),
                ),
                ("allowed_current_backlogs", models.PositiveIntegerField(default=0)),
                ("allowed_history_backlogs", models.PositiveIntegerField(default=0)),
                ("courses", models.JSONField(blank=True, default=list)),
                ("departments", models.JSONField(blank=True, default=list)),
                ("batches", models.JSONField(blank=True, default=list)),
                (
                    "gender_preference",
                    models.CharField(
                        choices=[("any", "Any"), ("male", "Male"), ("female", "Female")],
                        default="any",
                        max_length=8,
                    ),
                ),
                ("minimum_age", models.PositiveIntegerField(blank=True, null=True)),
                ("maximum_age", models.PositiveIntegerField(blank=True, null=True)),
                ("selection_rounds", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["registration_end"],
                "indexes": [
                    models.Index(fields=["status"], name="placements__status_5e1a90_idx"),
                    models.Index(
                        fields=["university", "status"], name="placements__univers_b73c21_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=APPLICATION_STATUS_CHOICES, max_length=16)),
                ("rounds", models.JSONField(blank=True, default=list)),
                ("cover_letter", models.TextField(blank=True)),
                ("withdrawal_reason", models.CharField(blank=True, max_length=500)),
                ("withdrawn_at", models.DateTimeField(blank=True, null=True)),
                ("withdrawn_by", models.CharField(blank=True, max_length=16)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                (
                    "drive",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to="placements.drive",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to="placements.student",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["drive", "status"], name="placements__drive_i_0a6d43_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("drive", "student"), name="unique_application"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApplicationEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sequence", models.PositiveIntegerField()),
                ("status", models.CharField(choices=APPLICATION_STATUS_CHOICES, max_length=16)),
                ("at", models.DateTimeField()),
                ("actor_role", models.CharField(max_length=16)),
                ("actor_id", models.CharField(max_length=64)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="placements.application",
                    ),
                ),
            ],
            options={
                "ordering": ["application", "sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("application", "sequence"), name="unique_application_event"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Candidate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invited", models.BooleanField(default=False)),
                ("invited_at", models.DateTimeField(blank=True, null=True)),
                ("manually_added", models.BooleanField(default=False)),
                (
                    "fit_score",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        null=True,
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                ("ai_reasons", models.JSONField(blank=True, default=list)),
                ("annotated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "drive",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="candidates",
                        to="placements.drive",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="placements.student",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("drive", "student"), name="unique_candidate"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Offer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=OFFER_STATUS_CHOICES, max_length=16)),
                ("compensation", models.DecimalField(decimal_places=2, max_digits=14)),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("issued_at", models.DateTimeField()),
                ("expires_at", models.DateTimeField()),
                (
                    "counter_compensation",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
                ),
                ("counter_message", models.TextField(blank=True)),
                ("countered_at", models.DateTimeField(blank=True, null=True)),
                ("response_message", models.TextField(blank=True)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers",
                        to="placements.application",
                    ),
                ),
                (
                    "drive",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers",
                        to="placements.drive",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offers",
                        to="placements.student",
                    ),
                ),
                (
                    "supersedes",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="placements.offer",
                    ),
                ),
            ],
            options={
                "ordering": ["-issued_at"],
                "indexes": [
                    models.Index(fields=["student", "status"], name="placements__student_3f9e62_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("application",),
                        name="one_pending_offer_per_application",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="student",
            name="placed_offer",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="placements.offer",
            ),
        ),
    ]
