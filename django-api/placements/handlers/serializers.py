"""Serializers for transforming domain models to API responses, and for
validating request bodies before they reach the service."""

from rest_framework import serializers

from placements.domain.models import (
    DriveStatus,
    GenderPreference,
    RoundStatus,
)
from placements.services.placement_service import REVIEW_TARGETS


def _enum_choices(members) -> list[str]:
    return [member.value for member in members]


class EnumValueField(serializers.Field):
    """Read-only field rendering an Enum member as its value."""

    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        return value.value if value is not None else None


class IdField(serializers.Field):
    """Read-only field rendering an entity id value object as a string."""

    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        return str(value) if value is not None else None


# -- responses ----------------------------------------------------------------


class SelectionRoundSerializer(serializers.Serializer):
    round_type = serializers.CharField()
    order = serializers.IntegerField()
    is_elimination = serializers.BooleanField()


class DriveSerializer(serializers.Serializer):
    """Serializer for Drive domain model."""

    id = IdField()
    title = serializers.CharField()
    company = serializers.CharField()
    university = serializers.CharField()
    role = serializers.CharField()
    status = EnumValueField()
    registration_start = serializers.DateTimeField(source="timeline.registration_start")
    registration_end = serializers.DateTimeField(source="timeline.registration_end")
    drive_date = serializers.DateTimeField(source="timeline.drive_date")
    result_date = serializers.DateTimeField(source="timeline.result_date")
    criteria = serializers.SerializerMethodField()
    selection_rounds = SelectionRoundSerializer(many=True)

    def get_criteria(self, drive) -> dict:
        criteria = drive.criteria
        return {
            "minimum_cgpa": criteria.minimum_cgpa.value,
            "allowed_backlogs": {
                "current": criteria.allowed_backlogs.current,
                "history": criteria.allowed_backlogs.history,
            },
            "courses": sorted(criteria.courses),
            "departments": sorted(criteria.departments),
            "batches": sorted(criteria.batches),
            "gender_preference": criteria.gender_preference.value,
            "age_limit": {
                "minimum": criteria.age_limit.minimum,
                "maximum": criteria.age_limit.maximum,
            },
        }


class DriveOverviewSerializer(serializers.Serializer):
    drive = DriveSerializer()
    phase = EnumValueField()
    registration_status = EnumValueField()
    days_until_drive = serializers.IntegerField()


class DriveStatisticsSerializer(serializers.Serializer):
    eligible = serializers.IntegerField()
    invited = serializers.IntegerField()
    applied = serializers.IntegerField()
    shortlisted = serializers.IntegerField()
    selected = serializers.IntegerField()
    offers_issued = serializers.IntegerField()
    offers_accepted = serializers.IntegerField()
    application_percentage = serializers.IntegerField()


class CandidateSerializer(serializers.Serializer):
    student_id = IdField()
    invited = serializers.BooleanField()
    invited_at = serializers.DateTimeField()
    manually_added = serializers.BooleanField()
    fit_score = serializers.IntegerField(source="fit_score.value", default=None)
    ai_reasons = serializers.ListField(child=serializers.CharField())
    annotated_at = serializers.DateTimeField()


class HistoryEntrySerializer(serializers.Serializer):
    status = EnumValueField()
    at = serializers.DateTimeField()
    actor_role = EnumValueField(source="actor.role")
    actor_id = serializers.CharField(source="actor.id")


class RoundOutcomeSerializer(serializers.Serializer):
    round_type = serializers.CharField()
    order = serializers.IntegerField()
    status = EnumValueField()
    recorded_at = serializers.DateTimeField()
    notes = serializers.CharField()


class WithdrawalSerializer(serializers.Serializer):
    reason = serializers.CharField()
    at = serializers.DateTimeField()
    initiator = EnumValueField()


class ApplicationSerializer(serializers.Serializer):
    id = IdField()
    student_id = IdField()
    drive_id = IdField()
    status = EnumValueField()
    applied_at = serializers.DateTimeField()
    history = HistoryEntrySerializer(many=True)
    rounds = RoundOutcomeSerializer(many=True)
    withdrawal = WithdrawalSerializer(allow_null=True)
    cover_letter = serializers.CharField()


class CounterProposalSerializer(serializers.Serializer):
    compensation = serializers.DecimalField(
        source="compensation.amount", max_digits=14, decimal_places=2
    )
    message = serializers.CharField()
    at = serializers.DateTimeField()


class OfferSerializer(serializers.Serializer):
    id = IdField()
    application_id = IdField()
    student_id = IdField()
    drive_id = IdField()
    status = EnumValueField()
    compensation = serializers.DecimalField(
        source="compensation.amount", max_digits=14, decimal_places=2
    )
    currency = serializers.CharField(source="compensation.currency")
    issued_at = serializers.DateTimeField()
    expires_at = serializers.DateTimeField()
    counter_proposal = CounterProposalSerializer(allow_null=True)
    response_message = serializers.CharField()
    responded_at = serializers.DateTimeField()
    supersedes = IdField()


class EligibilitySerializer(serializers.Serializer):
    eligible = serializers.BooleanField()
    failed_rules = serializers.SerializerMethodField()

    def get_failed_rules(self, result) -> list[str]:
        return [rule.value for rule in result.failed_rules]


class StudentSummarySerializer(serializers.Serializer):
    student_id = IdField()
    total_applications = serializers.IntegerField()
    total_offers = serializers.IntegerField()
    is_placed = serializers.BooleanField()
    verification_status = EnumValueField()


# -- requests -----------------------------------------------------------------


class SelectionRoundInputSerializer(serializers.Serializer):
    round_type = serializers.CharField(max_length=64)
    order = serializers.IntegerField(min_value=1)
    is_elimination = serializers.BooleanField(default=False)


class DriveCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    company = serializers.CharField(max_length=64)
    university = serializers.CharField(max_length=64)
    role = serializers.CharField(max_length=200)
    registration_start = serializers.DateTimeField()
    registration_end = serializers.DateTimeField()
    drive_date = serializers.DateTimeField()
    result_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    minimum_cgpa = serializers.FloatField(min_value=0, max_value=10)
    allowed_current_backlogs = serializers.IntegerField(min_value=0, default=0)
    allowed_history_backlogs = serializers.IntegerField(min_value=0, default=0)
    courses = serializers.ListField(child=serializers.CharField(), default=list)
    departments = serializers.ListField(child=serializers.CharField(), default=list)
    batches = serializers.ListField(child=serializers.CharField(), default=list)
    gender_preference = serializers.ChoiceField(
        choices=_enum_choices(GenderPreference), default=GenderPreference.ANY.value
    )
    minimum_age = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    maximum_age = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    selection_rounds = SelectionRoundInputSerializer(many=True, default=list)


class DriveListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=_enum_choices(DriveStatus), required=False)


class ApplySerializer(serializers.Serializer):
    cover_letter = serializers.CharField(allow_blank=True, default="", max_length=5000)


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=sorted(_enum_choices(REVIEW_TARGETS)),
    )


class WithdrawSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, default="", max_length=500)


class RecordRoundSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[s.value for s in RoundStatus if s is not RoundStatus.SCHEDULED]
    )
    notes = serializers.CharField(allow_blank=True, default="")


class IssueOfferSerializer(serializers.Serializer):
    compensation = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    currency = serializers.CharField(max_length=3, default="INR")
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class RespondToOfferSerializer(serializers.Serializer):
    response = serializers.ChoiceField(choices=["accept", "reject", "counter"])
    message = serializers.CharField(allow_blank=True, default="")
    counter_compensation = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=0, required=False, allow_null=True
    )

    def validate(self, attrs):
        if attrs["response"] == "counter" and attrs.get("counter_compensation") is None:
            raise serializers.ValidationError(
                {"counter_compensation": "Required when countering an offer."}
            )
        return attrs


class AnnotationSerializer(serializers.Serializer):
    fit_score = serializers.IntegerField(min_value=0, max_value=100)
    reasons = serializers.ListField(child=serializers.CharField(), default=list)
