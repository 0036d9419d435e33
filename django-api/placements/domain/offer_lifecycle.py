"""Status machine for offers.

An offer is only issued against a selected application, and an
application holds at most one pending offer at a time. Expiry is checked
lazily whenever an offer is read or acted on.

A countered offer is final from the student's side: the company either
issues a revised offer that supersedes it or closes the negotiation.
"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from placements.domain import application_lifecycle
from placements.domain.actors import Actor
from placements.domain.errors import (
    ApplicationNotSelectedError,
    DuplicatePendingOfferError,
    InvalidTransitionError,
    OfferExpiredError,
)
from placements.domain.models import (
    Application,
    ApplicationStatus,
    CounterProposal,
    Offer,
    OfferStatus,
)
from placements.domain.value_objects import Money, OfferId

RESPONSES = frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.COUNTERED})

# Application status that follows each student response.
APPLICATION_OUTCOMES = {
    OfferStatus.ACCEPTED: ApplicationStatus.OFFER_ACCEPTED,
    OfferStatus.REJECTED: ApplicationStatus.OFFER_DECLINED,
}

NEGOTIABLE_STATUSES = frozenset({OfferStatus.COUNTERED, OfferStatus.EXPIRED})


def pending_offer(offers: Iterable[Offer]) -> Offer | None:
    return next((offer for offer in offers if offer.is_pending), None)


def is_expired(offer: Offer, now: datetime) -> bool:
    return offer.is_pending and now > offer.expires_at


def resolve_expiry(offer: Offer, now: datetime) -> Offer:
    """Return the offer as ``expired`` if it is pending past its deadline."""
    if is_expired(offer, now):
        return replace(offer, status=OfferStatus.EXPIRED)
    return offer


def _new_offer(
    application: Application,
    compensation: Money,
    now: datetime,
    expires_at: datetime,
    supersedes: OfferId | None = None,
) -> Offer:
    if expires_at <= now:
        raise ValueError("Offer expiry must be in the future")
    return Offer(
        id=OfferId.new(),
        application_id=application.id,
        student_id=application.student_id,
        drive_id=application.drive_id,
        status=OfferStatus.PENDING,
        compensation=compensation,
        issued_at=now,
        expires_at=expires_at,
        supersedes=supersedes,
    )


def issue_offer(
    application: Application,
    existing_offers: Iterable[Offer],
    compensation: Money,
    actor: Actor,
    now: datetime,
    expires_at: datetime,
) -> tuple[Offer, Application]:
    """Create a pending offer and move the application to ``offer_issued``.

    Raises:
        DuplicatePendingOfferError: If the application has a pending offer.
        ApplicationNotSelectedError: If the application is not ``selected``.
    """
    existing = [resolve_expiry(offer, now) for offer in existing_offers]
    if pending_offer(existing) is not None:
        raise DuplicatePendingOfferError(str(application.id))
    if application.status is not ApplicationStatus.SELECTED:
        raise ApplicationNotSelectedError(application.status)

    offer = _new_offer(application, compensation, now, expires_at)
    issued = application_lifecycle.transition(
        application, ApplicationStatus.OFFER_ISSUED, actor, now
    )
    return offer, issued


def respond(
    offer: Offer,
    response: OfferStatus,
    now: datetime,
    message: str = "",
    counter: Money | None = None,
) -> Offer:
    """Apply a student's response to a pending offer.

    Raises:
        OfferExpiredError: If the offer is past its expiry or already stored
            as expired. The error carries the expired offer so the caller
            can persist it.
        InvalidTransitionError: If the offer is no longer pending or the
            response is not one a student can give.
        ValueError: If a counter response has no counter compensation.
    """
    if response not in RESPONSES:
        raise InvalidTransitionError(offer.status, response)
    if offer.status is OfferStatus.EXPIRED or is_expired(offer, now):
        raise OfferExpiredError(resolve_expiry(offer, now))
    if not offer.is_pending:
        raise InvalidTransitionError(offer.status, response)

    if response is OfferStatus.COUNTERED:
        if counter is None:
            raise ValueError("A counter response needs a counter compensation")
        return replace(
            offer,
            status=OfferStatus.COUNTERED,
            counter_proposal=CounterProposal(compensation=counter, message=message, at=now),
            response_message=message,
            responded_at=now,
        )
    return replace(offer, status=response, response_message=message, responded_at=now)


def _ensure_negotiable(
    application: Application, offer: Offer, offers: Iterable[Offer], now: datetime
) -> None:
    if offer.status not in NEGOTIABLE_STATUSES:
        raise InvalidTransitionError(offer.status, OfferStatus.PENDING)
    if application.status is not ApplicationStatus.OFFER_ISSUED:
        raise InvalidTransitionError(application.status, ApplicationStatus.OFFER_ISSUED)
    if pending_offer(resolve_expiry(o, now) for o in offers) is not None:
        raise DuplicatePendingOfferError(str(application.id))


def revise_offer(
    application: Application,
    offer: Offer,
    offers: Iterable[Offer],
    compensation: Money,
    now: datetime,
    expires_at: datetime,
) -> Offer:
    """Issue a fresh pending offer that supersedes a countered or expired one."""
    offers = list(offers)
    _ensure_negotiable(application, offer, offers, now)
    return _new_offer(application, compensation, now, expires_at, supersedes=offer.id)


def close_negotiation(
    application: Application,
    offer: Offer,
    offers: Iterable[Offer],
    actor: Actor,
    now: datetime,
) -> Application:
    """End a countered or expired offer without a revision."""
    offers = list(offers)
    _ensure_negotiable(application, offer, offers, now)
    return application_lifecycle.transition(
        application, ApplicationStatus.OFFER_DECLINED, actor, now
    )
