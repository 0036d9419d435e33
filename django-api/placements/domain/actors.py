"""Capability-tagged actors.

Every service operation receives the acting party and checks its capability
once, at the service boundary.
"""

from dataclasses import dataclass
from enum import Enum

from placements.domain.errors import PermissionDeniedError


class Role(Enum):
    STUDENT = "student"
    COMPANY = "company"
    UNIVERSITY = "university"
    ADMIN = "admin"
    SYSTEM = "system"


class Capability(Enum):
    APPLY = "apply"
    REVIEW = "review"
    WITHDRAW = "withdraw"
    ISSUE_OFFER = "issue_offer"
    RESPOND_TO_OFFER = "respond_to_offer"
    MANAGE_DRIVE = "manage_drive"
    ANNOTATE = "annotate"
    VIEW = "view"


CAPABILITIES: dict[Capability, frozenset[Role]] = {
    Capability.APPLY: frozenset({Role.STUDENT}),
    Capability.REVIEW: frozenset({Role.COMPANY, Role.UNIVERSITY, Role.ADMIN}),
    Capability.WITHDRAW: frozenset({Role.STUDENT, Role.UNIVERSITY, Role.ADMIN}),
    Capability.ISSUE_OFFER: frozenset({Role.COMPANY, Role.ADMIN}),
    Capability.RESPOND_TO_OFFER: frozenset({Role.STUDENT}),
    Capability.MANAGE_DRIVE: frozenset({Role.UNIVERSITY, Role.COMPANY, Role.ADMIN}),
    Capability.ANNOTATE: frozenset({Role.SYSTEM, Role.ADMIN, Role.UNIVERSITY}),
    Capability.VIEW: frozenset(Role),
}


@dataclass(frozen=True)
class Actor:
    """The party performing an operation."""

    role: Role
    id: str

    @classmethod
    def system(cls) -> "Actor":
        return cls(role=Role.SYSTEM, id="system")

    def can(self, capability: Capability) -> bool:
        return self.role in CAPABILITIES[capability]


def require(
    actor: Actor,
    capability: Capability,
    owner: str | None = None,
    company: str | None = None,
) -> None:
    """Raise PermissionDeniedError unless ``actor`` holds ``capability``.

    When ``owner`` is given, a student actor must also be that owner. When
    ``company`` is given, a company actor must be the drive's company.
    """
    if not actor.can(capability):
        raise PermissionDeniedError(capability.value)
    if owner is not None and actor.role is Role.STUDENT and actor.id != str(owner):
        raise PermissionDeniedError(capability.value)
    if company is not None and actor.role is Role.COMPANY and actor.id != company:
        raise PermissionDeniedError(capability.value)
