"""
Typed views of verified Stripe events.

A Stripe event body is an untyped JSON object. This module narrows it to
frozen dataclasses, rejecting unexpected shapes with InvalidMetadataError
instead of coercing them.

Internal event types:
    purchase_completed  <- checkout.session.completed
    account_updated     <- account.updated
    any other provider type passes through verbatim and is acknowledged
    without side effects by the dispatcher.

Usage:
    event = VerifiedEvent.from_payload(json.loads(raw_body))
    if event.type == PURCHASE_COMPLETED:
        purchase = PurchaseCompleted.from_event(event)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from payments.exceptions import InvalidEventPayloadError, InvalidMetadataError

PURCHASE_COMPLETED = "purchase_completed"
ACCOUNT_UPDATED = "account_updated"

# Stripe event type -> internal event type
EVENT_TYPE_MAP: dict[str, str] = {
    "checkout.session.completed": PURCHASE_COMPLETED,
    "account.updated": ACCOUNT_UPDATED,
}


@dataclass(frozen=True)
class VerifiedEvent:
    """
    An authenticated provider event.

    Attributes:
        id: Stripe event ID (evt_xxx)
        type: Internal event type (see EVENT_TYPE_MAP)
        provider_type: Stripe event type as received
        data_object: The event's ``data.object`` payload
        livemode: Whether the event came from live mode
    """

    id: str
    type: str
    provider_type: str
    data_object: dict[str, Any] = field(default_factory=dict)
    livemode: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> VerifiedEvent:
        """
        Build from a parsed event body.

        Raises:
            InvalidEventPayloadError: Body is not an event object
        """
        if not isinstance(payload, dict):
            raise InvalidEventPayloadError("event body is not a JSON object")

        event_id = payload.get("id")
        provider_type = payload.get("type")
        if not isinstance(event_id, str) or not event_id:
            raise InvalidEventPayloadError("missing event id")
        if not isinstance(provider_type, str) or not provider_type:
            raise InvalidEventPayloadError(
                "missing event type", details={"event_id": event_id}
            )

        data = payload.get("data")
        data_object = data.get("object") if isinstance(data, dict) else None
        if not isinstance(data_object, dict):
            raise InvalidEventPayloadError(
                "missing data.object", details={"event_id": event_id}
            )

        return cls(
            id=event_id,
            type=EVENT_TYPE_MAP.get(provider_type, provider_type),
            provider_type=provider_type,
            data_object=data_object,
            livemode=bool(payload.get("livemode", False)),
        )


def _metadata_value(metadata: dict[str, Any], key: str, session_id: str) -> str:
    value = metadata.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidMetadataError(
            f"metadata {key} must be a string",
            details={"session_id": session_id, "key": key},
        )
    return value.strip()


@dataclass(frozen=True)
class PurchaseCompleted:
    """
    A completed checkout session for a credit pack.

    Attributes:
        event_id: Stripe event ID
        session_id: Checkout Session ID, the reconciliation idempotency key
        amount_total_cents: Amount charged (>= 0)
        user_id: Purchasing user, trimmed
        pack: Credit pack name, trimmed
        affiliate_code: Optional referral code from checkout, trimmed
    """

    event_id: str
    session_id: str
    amount_total_cents: int
    user_id: str
    pack: str
    affiliate_code: str | None = None

    @classmethod
    def from_event(cls, event: VerifiedEvent) -> PurchaseCompleted:
        """
        Decode a purchase_completed event.

        Raises:
            InvalidMetadataError: Missing session id, bad amount, or
                missing user_id/pack metadata
        """
        session = event.data_object

        session_id = session.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise InvalidMetadataError(
                "Missing checkout session id", details={"event_id": event.id}
            )

        amount_total = session.get("amount_total")
        if amount_total is None:
            amount_total = 0
        if isinstance(amount_total, bool) or not isinstance(amount_total, int):
            raise InvalidMetadataError(
                "amount_total must be an integer",
                details={"session_id": session_id, "amount_total": amount_total},
            )
        if amount_total < 0:
            raise InvalidMetadataError(
                "amount_total must not be negative",
                details={"session_id": session_id, "amount_total": amount_total},
            )

        metadata = session.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise InvalidMetadataError(
                "metadata must be an object", details={"session_id": session_id}
            )

        user_id = _metadata_value(metadata, "user_id", session_id)
        pack = _metadata_value(metadata, "pack", session_id)
        affiliate_code = _metadata_value(metadata, "affiliate_code", session_id)

        if not user_id or not pack:
            raise InvalidMetadataError(
                "Missing metadata user_id/pack", details={"session_id": session_id}
            )

        return cls(
            event_id=event.id,
            session_id=session_id,
            amount_total_cents=amount_total,
            user_id=user_id,
            pack=pack,
            affiliate_code=affiliate_code or None,
        )


@dataclass(frozen=True)
class AccountUpdated:
    """
    A Stripe Connect account status change.

    Attributes:
        account_id: Stripe Account ID (acct_xxx)
        payouts_enabled: Whether Stripe has enabled payouts
        charges_enabled: Whether Stripe has enabled charges
        requirements_due: Count of currently_due + past_due requirements
        disabled_reason: Set when Stripe disabled the account
    """

    account_id: str
    payouts_enabled: bool = False
    charges_enabled: bool = False
    requirements_due: int = 0
    disabled_reason: str | None = None

    @classmethod
    def from_event(cls, event: VerifiedEvent) -> AccountUpdated:
        account = event.data_object

        account_id = account.get("id")
        if not isinstance(account_id, str) or not account_id:
            raise InvalidMetadataError(
                "Missing account id", details={"event_id": event.id}
            )

        requirements = account.get("requirements") or {}
        if not isinstance(requirements, dict):
            raise InvalidMetadataError(
                "requirements must be an object", details={"account_id": account_id}
            )
        currently_due = requirements.get("currently_due") or []
        past_due = requirements.get("past_due") or []

        return cls(
            account_id=account_id,
            payouts_enabled=bool(account.get("payouts_enabled", False)),
            charges_enabled=bool(account.get("charges_enabled", False)),
            requirements_due=len(currently_due) + len(past_due),
            disabled_reason=requirements.get("disabled_reason") or None,
        )
