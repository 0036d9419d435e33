"""Django ORM implementation of the PlacementStore.

Compare-and-swap saves use a conditional ``UPDATE ... WHERE status = %s``;
zero affected rows means another request changed the row first.
"""

from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from placements import models
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
from placements.domain.actors import Actor, Role
from placements.domain.errors import (
    AlreadyAppliedError,
    ConcurrentModificationError,
    DuplicatePendingOfferError,
)
from placements.domain.models import (
    CounterProposal,
    DriveCriteria,
    DriveTimeline,
    Gender,
    GenderPreference,
    HistoryEntry,
    RoundOutcome,
    RoundStatus,
    SelectionRound,
    VerificationStatus,
    WithdrawalRecord,
)
from placements.domain.value_objects import AgeLimit, Backlogs, Cgpa, FitScore, Money
from placements.stores.interfaces import PlacementStore


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def student_to_domain(row: models.Student) -> StudentSnapshot:
    return StudentSnapshot(
        id=StudentId(row.id),
        university=row.university,
        department=row.department,
        course=row.course,
        batch=row.batch,
        cgpa=Cgpa(row.cgpa),
        backlogs=Backlogs(current=row.current_backlogs, history=row.history_backlogs),
        gender=Gender(row.gender),
        verification_status=VerificationStatus(row.verification_status),
        date_of_birth=row.date_of_birth,
        name=row.name,
        email=row.email,
        is_placed=row.is_placed,
    )


def drive_to_domain(row: models.Drive) -> Drive:
    return Drive(
        id=DriveId(row.id),
        title=row.title,
        company=row.company,
        university=row.university,
        role=row.role,
        timeline=DriveTimeline(
            registration_start=row.registration_start,
            registration_end=row.registration_end,
            drive_date=row.drive_date,
            result_date=row.result_date,
        ),
        criteria=DriveCriteria(
            minimum_cgpa=Cgpa(row.minimum_cgpa),
            allowed_backlogs=Backlogs(
                current=row.allowed_current_backlogs,
                history=row.allowed_history_backlogs,
            ),
            courses=frozenset(row.courses),
            departments=frozenset(row.departments),
            batches=frozenset(row.batches),
            gender_preference=GenderPreference(row.gender_preference),
            age_limit=AgeLimit(minimum=row.minimum_age, maximum=row.maximum_age),
        ),
        status=DriveStatus(row.status),
        selection_rounds=tuple(
            SelectionRound(
                round_type=r["round_type"],
                order=r["order"],
                is_elimination=r.get("is_elimination", False),
            )
            for r in row.selection_rounds
        ),
    )


def _drive_fields(drive: Drive) -> dict:
    criteria = drive.criteria
    return {
        "title": drive.title,
        "company": drive.company,
        "university": drive.university,
        "role": drive.role,
        "status": drive.status.value,
        "registration_start": drive.timeline.registration_start,
        "registration_end": drive.timeline.registration_end,
        "drive_date": drive.timeline.drive_date,
        "result_date": drive.timeline.result_date,
        "minimum_cgpa": criteria.minimum_cgpa.value,
        "allowed_current_backlogs": criteria.allowed_backlogs.current,
        "allowed_history_backlogs": criteria.allowed_backlogs.history,
        "courses": sorted(criteria.courses),
        "departments": sorted(criteria.departments),
        "batches": sorted(criteria.batches),
        "gender_preference": criteria.gender_preference.value,
        "minimum_age": criteria.age_limit.minimum,
        "maximum_age": criteria.age_limit.maximum,
        "selection_rounds": [
            {"round_type": r.round_type, "order": r.order, "is_elimination": r.is_elimination}
            for r in drive.selection_rounds
        ],
    }


def application_to_domain(row: models.Application) -> Application:
    withdrawal = None
    if row.withdrawn_at is not None:
        withdrawal = WithdrawalRecord(
            reason=row.withdrawal_reason,
            at=row.withdrawn_at,
            initiator=Role(row.withdrawn_by),
        )
    return Application(
        id=ApplicationId(row.id),
        student_id=StudentId(row.student_id),
        drive_id=DriveId(row.drive_id),
        status=ApplicationStatus(row.status),
        history=tuple(
            HistoryEntry(
                status=ApplicationStatus(event.status),
                at=event.at,
                actor=Actor(role=Role(event.actor_role), id=event.actor_id),
            )
            for event in row.events.all()
        ),
        rounds=tuple(
            RoundOutcome(
                round_type=r["round_type"],
                order=r["order"],
                status=RoundStatus(r["status"]),
                recorded_at=_parse_dt(r.get("recorded_at")),
                notes=r.get("notes", ""),
            )
            for r in row.rounds
        ),
        withdrawal=withdrawal,
        cover_letter=row.cover_letter,
        version=row.version,
    )


def _application_fields(application: Application) -> dict:
    withdrawal = application.withdrawal
    return {
        "status": application.status.value,
        "rounds": [
            {
                "round_type": r.round_type,
                "order": r.order,
                "status": r.status.value,
                "recorded_at": _iso(r.recorded_at),
                "notes": r.notes,
            }
            for r in application.rounds
        ],
        "cover_letter": application.cover_letter,
        "withdrawal_reason": withdrawal.reason if withdrawal else "",
        "withdrawn_at": withdrawal.at if withdrawal else None,
        "withdrawn_by": withdrawal.initiator.value if withdrawal else "",
        "version": application.version,
        "updated_at": application.updated_at,
    }


def offer_to_domain(row: models.Offer) -> Offer:
    counter = None
    if row.counter_compensation is not None:
        counter = CounterProposal(
            compensation=Money(row.counter_compensation, row.currency),
            message=row.counter_message,
            at=row.countered_at,
        )
    return Offer(
        id=OfferId(row.id),
        application_id=ApplicationId(row.application_id),
        student_id=StudentId(row.student_id),
        drive_id=DriveId(row.drive_id),
        status=OfferStatus(row.status),
        compensation=Money(Decimal(row.compensation), row.currency),
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        counter_proposal=counter,
        response_message=row.response_message,
        responded_at=row.responded_at,
        supersedes=OfferId(row.supersedes_id) if row.supersedes_id else None,
    )


def _offer_fields(offer: Offer) -> dict:
    counter = offer.counter_proposal
    return {
        "status": offer.status.value,
        "compensation": offer.compensation.amount,
        "currency": offer.compensation.currency,
        "issued_at": offer.issued_at,
        "expires_at": offer.expires_at,
        "counter_compensation": counter.compensation.amount if counter else None,
        "counter_message": counter.message if counter else "",
        "countered_at": counter.at if counter else None,
        "response_message": offer.response_message,
        "responded_at": offer.responded_at,
        "supersedes_id": offer.supersedes.value if offer.supersedes else None,
    }


def candidate_to_domain(row: models.Candidate) -> CandidateEntry:
    return CandidateEntry(
        drive_id=DriveId(row.drive_id),
        student_id=StudentId(row.student_id),
        invited=row.invited,
        invited_at=row.invited_at,
        manually_added=row.manually_added,
        fit_score=FitScore(row.fit_score) if row.fit_score is not None else None,
        ai_reasons=tuple(row.ai_reasons),
        annotated_at=row.annotated_at,
    )


class DjangoPlacementStore(PlacementStore):
    """PostgreSQL-backed placement store using Django ORM."""

    def find_student(self, student_id: StudentId) -> StudentSnapshot | None:
        row = models.Student.objects.filter(pk=student_id.value).first()
        return student_to_domain(row) if row else None

    def list_students(self, university: str) -> list[StudentSnapshot]:
        return [
            student_to_domain(row)
            for row in models.Student.objects.filter(university=university)
        ]

    def find_drive(self, drive_id: DriveId) -> Drive | None:
        row = models.Drive.objects.filter(pk=drive_id.value).first()
        return drive_to_domain(row) if row else None

    def list_drives(self, status: DriveStatus | None = None) -> list[Drive]:
        queryset = models.Drive.objects.all()
        if status is not None:
            queryset = queryset.filter(status=status.value)
        return [drive_to_domain(row) for row in queryset.order_by("registration_end")]

    def save_drive(self, drive: Drive, expected_prior_status: DriveStatus | None) -> None:
        fields = _drive_fields(drive)
        with transaction.atomic():
            if expected_prior_status is None:
                if models.Drive.objects.filter(pk=drive.id.value).exists():
                    raise ConcurrentModificationError("drive", str(drive.id), None)
                models.Drive.objects.create(id=drive.id.value, **fields)
                return
            updated = models.Drive.objects.filter(
                pk=drive.id.value, status=expected_prior_status.value
            ).update(updated_at=timezone.now(), **fields)
            if not updated:
                raise ConcurrentModificationError(
                    "drive", str(drive.id), expected_prior_status.value
                )

    def _applications(self):
        return models.Application.objects.prefetch_related("events")

    def find_application(self, application_id: ApplicationId) -> Application | None:
        row = self._applications().filter(pk=application_id.value).first()
        return application_to_domain(row) if row else None

    def find_application_for(
        self, student_id: StudentId, drive_id: DriveId
    ) -> Application | None:
        row = (
            self._applications()
            .filter(student_id=student_id.value, drive_id=drive_id.value)
            .first()
        )
        return application_to_domain(row) if row else None

    def list_applications(
        self, drive_id: DriveId | None = None, student_id: StudentId | None = None
    ) -> list[Application]:
        queryset = self._applications()
        if drive_id is not None:
            queryset = queryset.filter(drive_id=drive_id.value)
        if student_id is not None:
            queryset = queryset.filter(student_id=student_id.value)
        return [application_to_domain(row) for row in queryset.order_by("created_at")]

    def save_application(
        self, application: Application, expected_prior_status: ApplicationStatus | None
    ) -> None:
        fields = _application_fields(application)
        pk = application.id.value
        with transaction.atomic():
            if expected_prior_status is None:
                try:
                    with transaction.atomic():
                        models.Application.objects.create(
                            id=pk,
                            drive_id=application.drive_id.value,
                            student_id=application.student_id.value,
                            created_at=application.applied_at,
                            **fields,
                        )
                except IntegrityError:
                    if models.Application.objects.filter(pk=pk).exists():
                        raise ConcurrentModificationError(
                            "application", str(application.id), None
                        ) from None
                    raise AlreadyAppliedError(str(application.drive_id)) from None
            else:
                updated = models.Application.objects.filter(
                    pk=pk,
                    status=expected_prior_status.value,
                    version=application.version - 1,
                ).update(**fields)
                if not updated:
                    raise ConcurrentModificationError(
                        "application", str(application.id), expected_prior_status.value
                    )
            self._append_history(application)

    def _append_history(self, application: Application) -> None:
        recorded = models.ApplicationEvent.objects.filter(
            application_id=application.id.value
        ).count()
        models.ApplicationEvent.objects.bulk_create(
            models.ApplicationEvent(
                application_id=application.id.value,
                sequence=sequence,
                status=entry.status.value,
                at=entry.at,
                actor_role=entry.actor.role.value,
                actor_id=entry.actor.id,
            )
            for sequence, entry in enumerate(application.history)
            if sequence >= recorded
        )

    def find_offer(self, offer_id: OfferId) -> Offer | None:
        row = models.Offer.objects.filter(pk=offer_id.value).first()
        return offer_to_domain(row) if row else None

    def list_offers(
        self,
        drive_id: DriveId | None = None,
        application_id: ApplicationId | None = None,
        student_id: StudentId | None = None,
    ) -> list[Offer]:
        queryset = models.Offer.objects.all()
        if drive_id is not None:
            queryset = queryset.filter(drive_id=drive_id.value)
        if application_id is not None:
            queryset = queryset.filter(application_id=application_id.value)
        if student_id is not None:
            queryset = queryset.filter(student_id=student_id.value)
        return [offer_to_domain(row) for row in queryset.order_by("-issued_at")]

    def save_offer(self, offer: Offer, expected_prior_status: OfferStatus | None) -> None:
        fields = _offer_fields(offer)
        pk = offer.id.value
        try:
            with transaction.atomic():
                if expected_prior_status is None:
                    if models.Offer.objects.filter(pk=pk).exists():
                        raise ConcurrentModificationError("offer", str(offer.id), None)
                    models.Offer.objects.create(
                        id=pk,
                        application_id=offer.application_id.value,
                        student_id=offer.student_id.value,
                        drive_id=offer.drive_id.value,
                        **fields,
                    )
                    return
                updated = models.Offer.objects.filter(
                    pk=pk, status=expected_prior_status.value
                ).update(**fields)
                if not updated:
                    raise ConcurrentModificationError(
                        "offer", str(offer.id), expected_prior_status.value
                    )
        except IntegrityError:
            raise DuplicatePendingOfferError(str(offer.application_id)) from None

    def save_offer_and_application(
        self,
        offer: Offer,
        expected_offer_status: OfferStatus | None,
        application: Application,
        expected_application_status: ApplicationStatus,
    ) -> None:
        with transaction.atomic():
            self.save_application(application, expected_application_status)
            self.save_offer(offer, expected_offer_status)

    def list_candidates(self, drive_id: DriveId) -> list[CandidateEntry]:
        return [
            candidate_to_domain(row)
            for row in models.Candidate.objects.filter(drive_id=drive_id.value).order_by("id")
        ]

    def save_candidate(self, candidate: CandidateEntry) -> None:
        models.Candidate.objects.update_or_create(
            drive_id=candidate.drive_id.value,
            student_id=candidate.student_id.value,
            defaults={
                "invited": candidate.invited,
                "invited_at": candidate.invited_at,
                "manually_added": candidate.manually_added,
                "fit_score": candidate.fit_score.value if candidate.fit_score else None,
                "ai_reasons": list(candidate.ai_reasons),
                "annotated_at": candidate.annotated_at,
            },
        )

    def record_placement(self, student_id: StudentId, offer: Offer) -> None:
        models.Student.objects.filter(pk=student_id.value).update(
            is_placed=True,
            placed_offer_id=offer.id.value,
            placement_date=offer.responded_at or timezone.now(),
        )
