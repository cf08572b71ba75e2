"""
Checkout session creation for credit packs.

The session metadata (user_id, pack, affiliate_code) is what
PurchaseReconciler reads back from checkout.session.completed.

Usage:
    from payments.services import CheckoutService

    result = CheckoutService(config).create_session(
        pack="pro",
        user_id="u1",
        affiliate_code="SPRING",
    )
    if result.success:
        redirect(result.data.url)
"""

from __future__ import annotations

from core.services import BaseService, ServiceResult

from payments.adapters import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    StripeAdapter,
)
from payments.conf import PaymentsConfig
from payments.pricing import CHECKOUT_CURRENCY, PACK_PRICES_CENTS


class CheckoutService(BaseService):
    """Create hosted Stripe Checkout sessions for credit packs."""

    def __init__(
        self,
        config: PaymentsConfig | None = None,
        stripe_adapter: type | None = None,
    ) -> None:
        self.config = config or PaymentsConfig.from_settings()
        self.stripe_adapter = stripe_adapter or StripeAdapter

    def create_session(
        self,
        pack: str,
        user_id: str,
        affiliate_code: str | None = None,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> ServiceResult[CheckoutSessionResult]:
        """
        Create a checkout session for one pack.

        Returns:
            ServiceResult containing the session, or failure with
            UNKNOWN_PACK / MISSING_REDIRECT_URL

        Raises:
            StripeError: If Stripe rejects the session
        """
        amount_cents = PACK_PRICES_CENTS.get(pack)
        if amount_cents is None:
            return ServiceResult.failure(
                f"Unknown pack: {pack}",
                error_code="UNKNOWN_PACK",
            )

        success_url = success_url or self.config.checkout_success_url
        cancel_url = cancel_url or self.config.checkout_cancel_url
        if not success_url or not cancel_url:
            return ServiceResult.failure(
                "success_url and cancel_url are required",
                error_code="MISSING_REDIRECT_URL",
            )

        metadata = {"user_id": user_id, "pack": pack}
        if affiliate_code:
            metadata["affiliate_code"] = affiliate_code

        session = self.stripe_adapter.create_checkout_session(
            CreateCheckoutSessionParams(
                amount_cents=amount_cents,
                currency=CHECKOUT_CURRENCY,
                product_name=f"{pack} credits",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
                client_reference_id=user_id,
            )
        )

        self.get_logger().info(
            "Checkout session created",
            extra={
                "session_id": session.id,
                "user_id": user_id,
                "pack": pack,
                "amount_cents": amount_cents,
            },
        )
        return ServiceResult.success(session)
