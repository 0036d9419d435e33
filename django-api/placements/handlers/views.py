"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Resolve the acting party from the request
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from placements import signals
from placements.domain.actors import Actor, Role
from placements.domain.drive import application_percentage
from placements.domain.errors import DomainError, ErrorCode, NotEligibleError
from placements.domain.models import (
    ApplicationStatus,
    Drive,
    DriveCriteria,
    DriveStatus,
    DriveTimeline,
    GenderPreference,
    OfferStatus,
    RoundStatus,
    SelectionRound,
)
from placements.domain.value_objects import AgeLimit, Backlogs, Cgpa, DriveId, Money
from placements.handlers import serializers as s
from placements.services import PlacementService
from placements.stores.django_store import DjangoPlacementStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.STUDENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DRIVE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.APPLICATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OFFER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CANDIDATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.APPLICATION_NOT_SELECTED: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_PENDING_OFFER: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_APPLIED: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENT_MODIFICATION: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_ELIGIBLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.REGISTRATION_CLOSED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.OFFER_EXPIRED: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

RESPONSES = {
    "accept": OfferStatus.ACCEPTED,
    "reject": OfferStatus.REJECTED,
    "counter": OfferStatus.COUNTERED,
}


class MissingActor(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "X-Actor-Role and X-Actor-Id headers are required."
    default_code = "not_authenticated"


def get_service() -> PlacementService:
    config = settings.PLACEMENTS
    return PlacementService(
        store=DjangoPlacementStore(),
        clock=timezone.now,
        publisher=signals.publish,
        offer_validity=timedelta(hours=config["OFFER_VALIDITY_HOURS"]),
    )


def error_response(exc: DomainError) -> Response:
    body = {"code": exc.code.value, "message": exc.message}
    if isinstance(exc, NotEligibleError):
        body["failed_rules"] = [rule.value for rule in exc.failed_rules]
    return Response(body, status=ERROR_STATUS[exc.code])


class PlacementView(APIView):
    """Base view: resolves the actor and maps domain errors."""

    def actor(self, request: Request) -> Actor | None:
        role = request.headers.get("X-Actor-Role", "")
        actor_id = request.headers.get("X-Actor-Id", "")
        try:
            return Actor(role=Role(role.lower()), id=actor_id.strip()) if actor_id else None
        except ValueError:
            return None

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        self.current_actor = self.actor(request)
        if self.current_actor is None:
            raise MissingActor()
        self.service = get_service()

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            return error_response(exc)
        if isinstance(exc, ValueError):
            logger.info("Rejected request: %s", exc)
            return Response(
                {"code": "VALIDATION_ERROR", "message": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return super().handle_exception(exc)

    def validated(self, serializer_class, data) -> dict:
        serializer = serializer_class(data=data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


def _drive_from(data: dict) -> Drive:
    return Drive(
        id=DriveId.new(),
        title=data["title"],
        company=data["company"],
        university=data["university"],
        role=data["role"],
        timeline=DriveTimeline(
            registration_start=data["registration_start"],
            registration_end=data["registration_end"],
            drive_date=data["drive_date"],
            result_date=data["result_date"],
        ),
        criteria=DriveCriteria(
            minimum_cgpa=Cgpa(data["minimum_cgpa"]),
            allowed_backlogs=Backlogs(
                current=data["allowed_current_backlogs"],
                history=data["allowed_history_backlogs"],
            ),
            courses=frozenset(data["courses"]),
            departments=frozenset(data["departments"]),
            batches=frozenset(data["batches"]),
            gender_preference=GenderPreference(data["gender_preference"]),
            age_limit=AgeLimit(
                minimum=data.get("minimum_age"), maximum=data.get("maximum_age")
            ),
        ),
        selection_rounds=tuple(SelectionRound(**r) for r in data["selection_rounds"]),
    )


class DriveListView(PlacementView):
    """Handler for GET/POST /api/drives"""

    def get(self, request: Request) -> Response:
        query = self.validated(s.DriveListQuerySerializer, request.query_params)
        drive_status = DriveStatus(query["status"]) if "status" in query else None
        drives = self.service.list_drives(self.current_actor, drive_status)
        return Response(s.DriveSerializer(drives, many=True).data)

    def post(self, request: Request) -> Response:
        data = self.validated(s.DriveCreateSerializer, request.data)
        drive = self.service.create_drive(self.current_actor, _drive_from(data))
        return Response(s.DriveSerializer(drive).data, status=status.HTTP_201_CREATED)


class DriveDetailView(PlacementView):
    """Handler for GET /api/drives/{drive_id}"""

    def get(self, request: Request, drive_id: str) -> Response:
        overview = self.service.drive_overview(self.current_actor, drive_id)
        return Response(s.DriveOverviewSerializer(overview).data)


class DriveStatusView(PlacementView):
    """Handler for POST /api/drives/{drive_id}/{publish|close|complete|cancel}"""

    actions = {
        "publish": PlacementService.publish_drive,
        "close": PlacementService.close_drive,
        "complete": PlacementService.complete_drive,
        "cancel": PlacementService.cancel_drive,
    }

    def post(self, request: Request, drive_id: str, action: str) -> Response:
        handler = self.actions.get(action)
        if handler is None:
            return Response(status=status.HTTP_404_NOT_FOUND)
        drive = handler(self.service, self.current_actor, drive_id)
        return Response(s.DriveSerializer(drive).data)


class DriveStatisticsView(PlacementView):
    """Handler for GET /api/drives/{drive_id}/statistics"""

    def get(self, request: Request, drive_id: str) -> Response:
        statistics = self.service.drive_statistics(self.current_actor, drive_id)
        data = {
            **vars(statistics),
            "application_percentage": application_percentage(statistics),
        }
        return Response(s.DriveStatisticsSerializer(data).data)


class DriveRosterView(PlacementView):
    """Handler for GET/POST /api/drives/{drive_id}/roster"""

    def get(self, request: Request, drive_id: str) -> Response:
        roster = self.service.list_candidates(self.current_actor, drive_id)
        return Response(s.CandidateSerializer(roster, many=True).data)

    def post(self, request: Request, drive_id: str) -> Response:
        roster = self.service.build_roster(self.current_actor, drive_id)
        return Response(s.CandidateSerializer(roster, many=True).data)


class CandidateInviteView(PlacementView):
    """Handler for POST /api/drives/{drive_id}/candidates/{student_id}/invite"""

    def post(self, request: Request, drive_id: str, student_id: str) -> Response:
        candidate = self.service.invite_candidate(self.current_actor, drive_id, student_id)
        return Response(s.CandidateSerializer(candidate).data)


class CandidateAnnotationView(PlacementView):
    """Handler for POST /api/drives/{drive_id}/candidates/{student_id}/annotation"""

    def post(self, request: Request, drive_id: str, student_id: str) -> Response:
        data = self.validated(s.AnnotationSerializer, request.data)
        candidate = self.service.annotate_candidate(
            self.current_actor, drive_id, student_id, data["fit_score"], data["reasons"]
        )
        return Response(s.CandidateSerializer(candidate).data)


class DriveApplicationsView(PlacementView):
    """Handler for GET/POST /api/drives/{drive_id}/applications"""

    def get(self, request: Request, drive_id: str) -> Response:
        applications = self.service.list_applications(self.current_actor, drive_id=drive_id)
        return Response(s.ApplicationSerializer(applications, many=True).data)

    def post(self, request: Request, drive_id: str) -> Response:
        data = self.validated(s.ApplySerializer, request.data)
        application = self.service.apply(
            self.current_actor, drive_id, cover_letter=data["cover_letter"]
        )
        return Response(
            s.ApplicationSerializer(application).data, status=status.HTTP_201_CREATED
        )


class StudentEligibleDrivesView(PlacementView):
    """Handler for GET /api/students/{student_id}/eligible-drives"""

    def get(self, request: Request, student_id: str) -> Response:
        drives = self.service.eligible_drives(self.current_actor, student_id)
        return Response(s.DriveSerializer(drives, many=True).data)


class StudentEligibilityView(PlacementView):
    """Handler for GET /api/students/{student_id}/eligibility/{drive_id}"""

    def get(self, request: Request, student_id: str, drive_id: str) -> Response:
        result = self.service.check_eligibility(self.current_actor, student_id, drive_id)
        return Response(s.EligibilitySerializer(result).data)


class StudentSummaryView(PlacementView):
    """Handler for GET /api/students/{student_id}/summary"""

    def get(self, request: Request, student_id: str) -> Response:
        summary = self.service.student_summary(self.current_actor, student_id)
        return Response(s.StudentSummarySerializer(summary).data)


class StudentApplicationsView(PlacementView):
    """Handler for GET /api/students/{student_id}/applications"""

    def get(self, request: Request, student_id: str) -> Response:
        applications = self.service.list_applications(
            self.current_actor, student_id=student_id
        )
        return Response(s.ApplicationSerializer(applications, many=True).data)


class StudentOffersView(PlacementView):
    """Handler for GET /api/students/{student_id}/offers"""

    def get(self, request: Request, student_id: str) -> Response:
        offers = self.service.list_offers(self.current_actor, student_id=student_id)
        return Response(s.OfferSerializer(offers, many=True).data)


class ApplicationDetailView(PlacementView):
    """Handler for GET /api/applications/{application_id}"""

    def get(self, request: Request, application_id: str) -> Response:
        application = self.service.get_application(self.current_actor, application_id)
        return Response(s.ApplicationSerializer(application).data)


class ApplicationTransitionView(PlacementView):
    """Handler for POST /api/applications/{application_id}/transition"""

    def post(self, request: Request, application_id: str) -> Response:
        data = self.validated(s.TransitionSerializer, request.data)
        application = self.service.advance_application(
            self.current_actor, application_id, ApplicationStatus(data["status"])
        )
        return Response(s.ApplicationSerializer(application).data)


class ApplicationWithdrawView(PlacementView):
    """Handler for POST /api/applications/{application_id}/withdraw"""

    def post(self, request: Request, application_id: str) -> Response:
        data = self.validated(s.WithdrawSerializer, request.data)
        application = self.service.withdraw_application(
            self.current_actor, application_id, reason=data["reason"]
        )
        return Response(s.ApplicationSerializer(application).data)


class ApplicationRoundView(PlacementView):
    """Handler for POST /api/applications/{application_id}/rounds/{order}"""

    def post(self, request: Request, application_id: str, order: int) -> Response:
        data = self.validated(s.RecordRoundSerializer, request.data)
        application = self.service.record_round(
            self.current_actor,
            application_id,
            order,
            RoundStatus(data["status"]),
            notes=data["notes"],
        )
        return Response(s.ApplicationSerializer(application).data)


class ApplicationOfferView(PlacementView):
    """Handler for POST /api/applications/{application_id}/offers"""

    def post(self, request: Request, application_id: str) -> Response:
        data = self.validated(s.IssueOfferSerializer, request.data)
        offer = self.service.issue_offer(
            self.current_actor,
            application_id,
            Money(data["compensation"], data["currency"]),
            expires_at=data["expires_at"],
        )
        return Response(s.OfferSerializer(offer).data, status=status.HTTP_201_CREATED)


class OfferDetailView(PlacementView):
    """Handler for GET /api/offers/{offer_id}"""

    def get(self, request: Request, offer_id: str) -> Response:
        offer = self.service.get_offer(self.current_actor, offer_id)
        return Response(s.OfferSerializer(offer).data)


class OfferRespondView(PlacementView):
    """Handler for POST /api/offers/{offer_id}/respond"""

    def post(self, request: Request, offer_id: str) -> Response:
        data = self.validated(s.RespondToOfferSerializer, request.data)
        counter = data.get("counter_compensation")
        offer = self.service.respond_to_offer(
            self.current_actor,
            offer_id,
            RESPONSES[data["response"]],
            message=data["message"],
            counter=counter,
        )
        return Response(s.OfferSerializer(offer).data)


class OfferReviseView(PlacementView):
    """Handler for POST /api/offers/{offer_id}/revise"""

    def post(self, request: Request, offer_id: str) -> Response:
        data = self.validated(s.IssueOfferSerializer, request.data)
        offer = self.service.revise_offer(
            self.current_actor,
            offer_id,
            Money(data["compensation"], data["currency"]),
            expires_at=data["expires_at"],
        )
        return Response(s.OfferSerializer(offer).data, status=status.HTTP_201_CREATED)


class OfferCloseView(PlacementView):
    """Handler for POST /api/offers/{offer_id}/close"""

    def post(self, request: Request, offer_id: str) -> Response:
        application = self.service.close_negotiation(self.current_actor, offer_id)
        return Response(s.ApplicationSerializer(application).data)
