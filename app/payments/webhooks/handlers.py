"""
Webhook event handlers for verified Stripe events.

This module provides a handler registry keyed by internal event type and
the handlers for the events the ledger cares about.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- Centralized error handling

Usage:
    from payments.webhooks.handlers import dispatch_event, register_handler

    # Register a custom handler
    @register_handler("charge_refunded")
    def handle_charge_refunded(event: VerifiedEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_event(event)
"""

from __future__ import annotations

import logging
from typing import Callable

from django.db import transaction

from core.exceptions import BaseApplicationError
from core.services import ServiceResult

from payments.models import ReviewerPayoutAccount
from payments.services import PurchaseReconciler
from payments.state_machines import OnboardingStatus
from payments.webhooks.events import (
    ACCOUNT_UPDATED,
    PURCHASE_COMPLETED,
    AccountUpdated,
    VerifiedEvent,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps internal event types to handler functions
EVENT_HANDLERS: dict[str, Callable[[VerifiedEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register an event handler.

    Usage:
        @register_handler("purchase_completed")
        def handle_purchase_completed(event: VerifiedEvent) -> ServiceResult:
            ...

    Args:
        event_type: Internal event type (see payments.webhooks.events)

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[VerifiedEvent], ServiceResult]) -> Callable:
        EVENT_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_event(event: VerifiedEvent) -> ServiceResult:
    """
    Dispatch a verified event to the appropriate handler.

    If no handler is registered the event is acknowledged with a success
    result and no side effects. Dispatch never raises: application errors
    become failures carrying their error_code, anything else becomes a
    HANDLER_FAILED failure.

    Args:
        event: The verified event

    Returns:
        ServiceResult from the handler, or success if no handler
    """
    handler = EVENT_HANDLERS.get(event.type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {event.provider_type}",
            extra={"stripe_event_id": event.id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {event.type} to handler",
        extra={"stripe_event_id": event.id, "provider_type": event.provider_type},
    )

    try:
        return handler(event)
    except BaseApplicationError as e:
        logger.warning(
            f"Handler for {event.type} failed: {e.message}",
            extra={
                "stripe_event_id": event.id,
                "error_code": e.error_code,
                "details": e.details,
            },
        )
        return ServiceResult.failure(e.message, error_code=e.error_code)
    except Exception as e:
        logger.exception(
            f"Unexpected error in handler for {event.type}",
            extra={"stripe_event_id": event.id},
        )
        return ServiceResult.failure(str(e), error_code="HANDLER_FAILED")


# =============================================================================
# Purchase Handler
# =============================================================================


@register_handler(PURCHASE_COMPLETED)
def handle_purchase_completed(event: VerifiedEvent) -> ServiceResult:
    """
    Handle a completed checkout session.

    Called for checkout.session.completed. Delegates to PurchaseReconciler,
    which records the payment, credits the wallet and records any affiliate
    commission exactly once per session.
    """
    return PurchaseReconciler().reconcile(event)


# =============================================================================
# Connected Account Handler
# =============================================================================


@register_handler(ACCOUNT_UPDATED)
def handle_account_updated(event: VerifiedEvent) -> ServiceResult:
    """
    Handle connected account updates from Stripe.

    Called for account.updated, which is fired when a reviewer's Connect
    account changes, such as:
    - Onboarding completion
    - Capability changes (payouts_enabled, charges_enabled)
    - Verification issues

    Returns:
        ServiceResult with the updated ReviewerPayoutAccount, or None for
        accounts we do not know
    """
    update = AccountUpdated.from_event(event)

    logger.info(
        "Processing account.updated",
        extra={
            "stripe_event_id": event.id,
            "account_id": update.account_id,
            "payouts_enabled": update.payouts_enabled,
            "charges_enabled": update.charges_enabled,
            "requirements_due": update.requirements_due,
        },
    )

    with transaction.atomic():
        account = (
            ReviewerPayoutAccount.objects.select_for_update()
            .filter(connect_account_id=update.account_id)
            .first()
        )

        if not account:
            logger.info(
                "ReviewerPayoutAccount not found, may be external account",
                extra={
                    "account_id": update.account_id,
                    "stripe_event_id": event.id,
                },
            )
            return ServiceResult.success(None)

        account.payouts_enabled = update.payouts_enabled
        account.charges_enabled = update.charges_enabled

        if update.disabled_reason:
            account.onboarding_status = OnboardingStatus.REJECTED
        elif update.requirements_due == 0:
            account.onboarding_status = OnboardingStatus.COMPLETE
        else:
            account.onboarding_status = OnboardingStatus.IN_PROGRESS

        account.save()

        logger.info(
            "ReviewerPayoutAccount updated",
            extra={
                "reviewer_id": account.reviewer_id,
                "onboarding_status": account.onboarding_status,
                "payouts_enabled": account.payouts_enabled,
                "charges_enabled": account.charges_enabled,
            },
        )

        return ServiceResult.success(account)
