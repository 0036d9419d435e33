"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self
from uuid import UUID, uuid4


@dataclass(frozen=True)
class _EntityId:
    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class StudentId(_EntityId):
    """Unique identifier for a Student."""


@dataclass(frozen=True)
class DriveId(_EntityId):
    """Unique identifier for a placement Drive."""


@dataclass(frozen=True)
class ApplicationId(_EntityId):
    """Unique identifier for an Application."""


@dataclass(frozen=True)
class OfferId(_EntityId):
    """Unique identifier for an Offer."""


@dataclass(frozen=True)
class Cgpa:
    """Cumulative grade point average on a 10 point scale."""

    value: float

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 10:
            raise ValueError("CGPA must be between 0 and 10")


@dataclass(frozen=True)
class Backlogs:
    """Backlog counts, either held by a student or allowed by a drive."""

    current: int = 0
    history: int = 0

    def __post_init__(self) -> None:
        if self.current < 0 or self.history < 0:
            raise ValueError("Backlog counts cannot be negative")


@dataclass(frozen=True)
class Money:
    """Compensation figure with validation."""

    amount: Decimal
    currency: str = "INR"

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


@dataclass(frozen=True)
class FitScore:
    """Advisory 0-100 score supplied by the AI assistance service."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 100:
            raise ValueError("Fit score must be between 0 and 100")


@dataclass(frozen=True)
class AgeLimit:
    """Inclusive age bounds in whole years; either side may be open."""

    minimum: int | None = None
    maximum: int | None = None

    def __post_init__(self) -> None:
        if self.minimum is not None and self.minimum < 0:
            raise ValueError("Minimum age cannot be negative")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise ValueError("Minimum age cannot exceed maximum age")

    @property
    def is_open(self) -> bool:
        return self.minimum is None and self.maximum is None
