"""Eligibility evaluation for a student against a drive's criteria.

Each rule is checked independently so callers can show a student exactly
which requirements they miss, not just a yes/no answer.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from placements.domain.models import DriveCriteria, GenderPreference, StudentSnapshot


class EligibilityRule(Enum):
    CGPA = "cgpa"
    CURRENT_BACKLOGS = "current_backlogs"
    HISTORY_BACKLOGS = "history_backlogs"
    COURSE = "course"
    DEPARTMENT = "department"
    BATCH = "batch"
    GENDER = "gender"
    AGE = "age"


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    failed_rules: tuple[EligibilityRule, ...]


def _allowed(value: str, allowed: frozenset[str]) -> bool:
    return not allowed or value in allowed


def age_on(date_of_birth: date, on: date) -> int:
    """Age in whole years on the given date."""
    before_birthday = (on.month, on.day) < (date_of_birth.month, date_of_birth.day)
    return on.year - date_of_birth.year - int(before_birthday)


def _within_age_limit(student: StudentSnapshot, criteria: DriveCriteria, on: date) -> bool:
    limit = criteria.age_limit
    if limit.is_open:
        return True
    if student.date_of_birth is None:
        return False
    age = age_on(student.date_of_birth, on)
    if limit.minimum is not None and age < limit.minimum:
        return False
    if limit.maximum is not None and age > limit.maximum:
        return False
    return True


def evaluate(
    student: StudentSnapshot, criteria: DriveCriteria, on: date | None = None
) -> EligibilityResult:
    """Evaluate every rule and report the ones the student fails."""
    on = on or date.today()
    checks = (
        (EligibilityRule.CGPA, student.cgpa.value >= criteria.minimum_cgpa.value),
        (
            EligibilityRule.CURRENT_BACKLOGS,
            student.backlogs.current <= criteria.allowed_backlogs.current,
        ),
        (
            EligibilityRule.HISTORY_BACKLOGS,
            student.backlogs.history <= criteria.allowed_backlogs.history,
        ),
        (EligibilityRule.COURSE, _allowed(student.course, criteria.courses)),
        (EligibilityRule.DEPARTMENT, _allowed(student.department, criteria.departments)),
        (EligibilityRule.BATCH, _allowed(student.batch, criteria.batches)),
        (
            EligibilityRule.GENDER,
            criteria.gender_preference is GenderPreference.ANY
            or student.gender.value == criteria.gender_preference.value,
        ),
        (EligibilityRule.AGE, _within_age_limit(student, criteria, on)),
    )
    failed = tuple(rule for rule, passed in checks if not passed)
    return EligibilityResult(eligible=not failed, failed_rules=failed)
