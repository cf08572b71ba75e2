"""
Stripe Connect onboarding for reviewers.

Creates (or reuses) the reviewer's Express account and returns a
single-use onboarding link. Onboarding progress comes back later through
the account.updated webhook (see payments.webhooks.handlers).

Usage:
    from payments.services import ConnectOnboardingService

    result = ConnectOnboardingService().start_onboarding(
        reviewer_id="r1",
        return_url="https://example.com/payouts",
    )
"""

from __future__ import annotations

from dataclasses import dataclass

from core.services import BaseService, ServiceResult

from payments.adapters import IdempotencyKeyGenerator, StripeAdapter
from payments.models import ReviewerPayoutAccount
from payments.state_machines import OnboardingStatus


@dataclass
class OnboardingLink:
    """
    Attributes:
        url: Single-use Stripe onboarding URL
        connect_account_id: The reviewer's Stripe Account ID
    """

    url: str
    connect_account_id: str


class ConnectOnboardingService(BaseService):
    """Start or resume Stripe Connect onboarding for a reviewer."""

    def __init__(self, stripe_adapter: type | None = None) -> None:
        self.stripe_adapter = stripe_adapter or StripeAdapter

    def start_onboarding(
        self,
        reviewer_id: str,
        return_url: str,
        refresh_url: str | None = None,
    ) -> ServiceResult[OnboardingLink]:
        """
        Return an onboarding link, creating the connect account if needed.

        Raises:
            StripeError: If Stripe rejects the account or link creation
        """
        if not reviewer_id:
            return ServiceResult.failure(
                "Missing reviewer_id", error_code="MISSING_REVIEWER_ID"
            )
        if not return_url:
            return ServiceResult.failure(
                "Missing return_url", error_code="MISSING_RETURN_URL"
            )

        account = ReviewerPayoutAccount.objects.filter(reviewer_id=reviewer_id).first()

        if account is not None and account.is_connected:
            connect_account_id = account.connect_account_id
        else:
            connect_account_id = self.stripe_adapter.create_connect_account(
                idempotency_key=IdempotencyKeyGenerator.generate(
                    "connect_account", reviewer_id
                ),
                metadata={"reviewer_id": reviewer_id},
            )
            ReviewerPayoutAccount.objects.update_or_create(
                reviewer_id=reviewer_id,
                defaults={
                    "connect_account_id": connect_account_id,
                    "onboarding_status": OnboardingStatus.PENDING,
                },
            )
            self.get_logger().info(
                "Created connect account for reviewer",
                extra={
                    "reviewer_id": reviewer_id,
                    "connect_account_id": connect_account_id,
                },
            )

        link = self.stripe_adapter.create_account_link(
            account_id=connect_account_id,
            return_url=return_url,
            refresh_url=refresh_url,
        )
        return ServiceResult.success(
            OnboardingLink(url=link.url, connect_account_id=connect_account_id)
        )
