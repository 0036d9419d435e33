from placements.services.placement_service import (
    DriveOverview,
    PlacementService,
    StudentSummary,
)

__all__ = ["DriveOverview", "PlacementService", "StudentSummary"]
