"""Django signals carrying placement domain events.

The service publishes through ``publish``, which uses ``send_robust`` so a
failing receiver is logged and never undoes the saved transition.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import Signal, receiver

from placements.domain.events import ApplicationStatusChanged, OfferStatusChanged
from placements.domain.models import ApplicationStatus

logger = logging.getLogger(__name__)

application_status_changed = Signal()
offer_status_changed = Signal()

_SIGNALS = {
    ApplicationStatusChanged: application_status_changed,
    OfferStatusChanged: offer_status_changed,
}

EMAIL_SUBJECTS = {
    ApplicationStatus.OFFER_ISSUED: "You have received an offer",
    ApplicationStatus.OFFER_ACCEPTED: "Your offer acceptance is confirmed",
    ApplicationStatus.REJECTED: "Update on your application",
}


def publish(event) -> None:
    """Send a domain event to every receiver, logging receiver failures."""
    signal = _SIGNALS[type(event)]
    for handler, response in signal.send_robust(sender=type(event), event=event):
        if isinstance(response, Exception):
            logger.error(
                "Receiver %s failed for %s: %s",
                getattr(handler, "__name__", handler),
                type(event).__name__,
                response,
            )


def _student_email(student_id) -> str | None:
    from placements.models import Student

    return (
        Student.objects.filter(pk=student_id.value)
        .values_list("email", flat=True)
        .first()
    )


@receiver(application_status_changed)
def email_student_on_status_change(sender, event: ApplicationStatusChanged, **kwargs):
    """E-mail the student when an offer is issued or accepted, or they are rejected."""
    subject = EMAIL_SUBJECTS.get(event.to_status)
    if subject is None or not settings.PLACEMENTS["NOTIFICATIONS_ENABLED"]:
        return
    email = _student_email(event.student_id)
    if not email:
        logger.warning("No e-mail on file for student %s", event.student_id)
        return
    send_mail(
        subject=subject,
        message=(
            f"Your application {event.application_id} is now "
            f"{event.to_status.value.replace('_', ' ')}."
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
    )


@receiver(offer_status_changed)
def log_offer_status_change(sender, event: OfferStatusChanged, **kwargs):
    logger.info(
        "Offer %s for student %s is now %s",
        event.offer_id,
        event.student_id,
        event.to_status.value,
    )
