"""
Stripe webhook event verification.

The signature is checked over the exact raw bytes received. JSON parsing
happens only after the body is authenticated, since re-serialized JSON is
not guaranteed to be byte-identical.
"""

from __future__ import annotations

import json
import logging

from payments.adapters import WEBHOOK_TOLERANCE_SECONDS, StripeAdapter
from payments.exceptions import InvalidEventPayloadError, MissingCredentialError
from payments.webhooks.events import VerifiedEvent

logger = logging.getLogger(__name__)


class EventVerifier:
    """
    Authenticate inbound Stripe events with the endpoint signing secret.

    Usage:
        verifier = EventVerifier(config.webhook_secret)
        event = verifier.verify(request.body, request.headers.get("Stripe-Signature"))

    Raises (from verify):
        MissingCredentialError: No signature header or no configured secret
        SignatureMismatchError: Signature rejected (wrong secret, tampered
            body, malformed header, stale timestamp)
        InvalidEventPayloadError: Authenticated body is not an event object
    """

    def __init__(
        self,
        webhook_secret: str,
        tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def verify(self, raw_body: bytes, signature_header: str | None) -> VerifiedEvent:
        if not signature_header or not self.webhook_secret:
            logger.warning(
                "Webhook rejected: missing signature or secret",
                extra={
                    "has_signature": bool(signature_header),
                    "has_secret": bool(self.webhook_secret),
                },
            )
            raise MissingCredentialError()

        StripeAdapter.verify_webhook_signature(
            raw_body,
            signature_header,
            self.webhook_secret,
            tolerance=self.tolerance,
        )

        try:
            payload = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidEventPayloadError("body is not valid JSON") from e

        return VerifiedEvent.from_payload(payload)
