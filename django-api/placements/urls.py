from django.urls import path

from placements.handlers import (
    ApplicationDetailView,
    ApplicationOfferView,
    ApplicationRoundView,
    ApplicationTransitionView,
    ApplicationWithdrawView,
    CandidateAnnotationView,
    CandidateInviteView,
    DriveApplicationsView,
    DriveDetailView,
    DriveListView,
    DriveRosterView,
    DriveStatisticsView,
    DriveStatusView,
    OfferCloseView,
    OfferDetailView,
    OfferRespondView,
    OfferReviseView,
    StudentApplicationsView,
    StudentEligibilityView,
    StudentEligibleDrivesView,
    StudentOffersView,
    StudentSummaryView,
)

urlpatterns = [
    path("drives", DriveListView.as_view(), name="drive-list"),
    path("drives/<str:drive_id>", DriveDetailView.as_view(), name="drive-detail"),
    path(
        "drives/<str:drive_id>/statistics",
        DriveStatisticsView.as_view(),
        name="drive-statistics",
    ),
    path("drives/<str:drive_id>/roster", DriveRosterView.as_view(), name="drive-roster"),
    path(
        "drives/<str:drive_id>/applications",
        DriveApplicationsView.as_view(),
        name="drive-applications",
    ),
    path(
        "drives/<str:drive_id>/candidates/<str:student_id>/invite",
        CandidateInviteView.as_view(),
        name="candidate-invite",
    ),
    path(
        "drives/<str:drive_id>/candidates/<str:student_id>/annotation",
        CandidateAnnotationView.as_view(),
        name="candidate-annotation",
    ),
    path(
        "drives/<str:drive_id>/<str:action>",
        DriveStatusView.as_view(),
        name="drive-status",
    ),
    path(
        "students/<str:student_id>/eligible-drives",
        StudentEligibleDrivesView.as_view(),
        name="student-eligible-drives",
    ),
    path(
        "students/<str:student_id>/eligibility/<str:drive_id>",
        StudentEligibilityView.as_view(),
        name="student-eligibility",
    ),
    path(
        "students/<str:student_id>/summary",
        StudentSummaryView.as_view(),
        name="student-summary",
    ),
    path(
        "students/<str:student_id>/applications",
        StudentApplicationsView.as_view(),
        name="student-applications",
    ),
    path(
        "students/<str:student_id>/offers",
        StudentOffersView.as_view(),
        name="student-offers",
    ),
    path(
        "applications/<str:application_id>",
        ApplicationDetailView.as_view(),
        name="application-detail",
    ),
    path(
        "applications/<str:application_id>/transition",
        ApplicationTransitionView.as_view(),
        name="application-transition",
    ),
    path(
        "applications/<str:application_id>/withdraw",
        ApplicationWithdrawView.as_view(),
        name="application-withdraw",
    ),
    path(
        "applications/<str:application_id>/rounds/<int:order>",
        ApplicationRoundView.as_view(),
        name="application-round",
    ),
    path(
        "applications/<str:application_id>/offers",
        ApplicationOfferView.as_view(),
        name="application-offers",
    ),
    path("offers/<str:offer_id>", OfferDetailView.as_view(), name="offer-detail"),
    path(
        "offers/<str:offer_id>/respond",
        OfferRespondView.as_view(),
        name="offer-respond",
    ),
    path("offers/<str:offer_id>/revise", OfferReviseView.as_view(), name="offer-revise"),
    path("offers/<str:offer_id>/close", OfferCloseView.as_view(), name="offer-close"),
]
