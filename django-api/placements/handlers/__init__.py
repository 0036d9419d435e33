from placements.handlers.views import (
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

__all__ = [
    "ApplicationDetailView",
    "ApplicationOfferView",
    "ApplicationRoundView",
    "ApplicationTransitionView",
    "ApplicationWithdrawView",
    "CandidateAnnotationView",
    "CandidateInviteView",
    "DriveApplicationsView",
    "DriveDetailView",
    "DriveListView",
    "DriveRosterView",
    "DriveStatisticsView",
    "DriveStatusView",
    "OfferCloseView",
    "OfferDetailView",
    "OfferRespondView",
    "OfferReviseView",
    "StudentApplicationsView",
    "StudentEligibilityView",
    "StudentEligibleDrivesView",
    "StudentOffersView",
    "StudentSummaryView",
]
