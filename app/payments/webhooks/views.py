"""
Webhook endpoint view for Stripe.

The view:
1. Verifies the webhook signature over the raw body
2. Dispatches the verified event to its handler, synchronously
3. Answers with a plain-text status Stripe can act on

Processing is synchronous so the response tells Stripe whether to
redeliver: 200 means done (or safely ignored), 400 means never retry,
500 means retry later.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.conf import PaymentsConfig
from payments.exceptions import (
    InvalidEventPayloadError,
    InvalidMetadataError,
    VerificationError,
)
from payments.webhooks.handlers import dispatch_event
from payments.webhooks.verifier import EventVerifier

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive, verify and process a Stripe webhook event.

    Security:
    - Signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - Handlers are idempotent on the provider's identifiers (checkout
      session id, account id), so Stripe redeliveries are harmless

    Returns:
        HttpResponse with status:
        - 200 "ok": Event processed or acknowledged
        - 400: Missing/invalid signature, malformed payload or metadata
        - 500: Ledger write failed; Stripe will redeliver

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    config = PaymentsConfig.from_settings()
    verifier = EventVerifier(config.webhook_secret)

    try:
        event = verifier.verify(request.body, request.headers.get("Stripe-Signature"))
    except VerificationError as e:
        logger.warning(
            "Webhook verification failed",
            extra={"error_code": e.error_code, "error": e.message},
        )
        return HttpResponse(e.message, status=400)
    except InvalidEventPayloadError as e:
        logger.warning(
            "Webhook payload rejected",
            extra={"error": e.message, "details": e.details},
        )
        return HttpResponse(f"Invalid event payload: {e.message}", status=400)

    logger.info(
        f"Received Stripe webhook: {event.provider_type}",
        extra={
            "stripe_event_id": event.id,
            "event_type": event.provider_type,
            "livemode": event.livemode,
        },
    )

    result = dispatch_event(event)

    if result.success:
        return HttpResponse("ok", status=200)

    if result.error_code == InvalidMetadataError.default_error_code:
        return HttpResponse(f"Invalid metadata: {result.error}", status=400)

    logger.error(
        f"Webhook handler failed for {event.provider_type}",
        extra={
            "stripe_event_id": event.id,
            "error_code": result.error_code,
            "error": result.error,
        },
    )
    return HttpResponse(f"Webhook handler error: {result.error}", status=500)
