"""
Payment admin configuration.

Registers the ledger models with the Django admin. Ledger rows are
written by the reconciler and the payout authorizer, so most of them are
read-only here.
"""

from django.contrib import admin

from payments.models import (
    Affiliate,
    AffiliateAttribution,
    AffiliateCommission,
    PaymentRecord,
    PayoutRequest,
    ReviewerBalance,
    ReviewerPayoutAccount,
    Wallet,
)
from payments.services import PayoutAuthorizer

__all__ = [
    "AffiliateAdmin",
    "AffiliateAttributionAdmin",
    "AffiliateCommissionAdmin",
    "PaymentRecordAdmin",
    "PayoutRequestAdmin",
    "ReviewerBalanceAdmin",
    "ReviewerPayoutAccountAdmin",
    "WalletAdmin",
]


def cents_display(amount_cents: int, currency: str = "usd") -> str:
    return f"${amount_cents / 100:.2f} {currency.upper()}"


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are never added or deleted by hand (audit trail)."""

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(PaymentRecord)
class PaymentRecordAdmin(ReadOnlyLedgerAdmin):
    """
    Admin configuration for PaymentRecord.

    One row per paid checkout session.
    """

    list_display = [
        "session_id",
        "user_id",
        "amount_display",
        "credits_granted",
        "status",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["session_id", "user_id"]
    readonly_fields = [
        "id",
        "user_id",
        "session_id",
        "amount_cents",
        "credits_granted",
        "status",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def amount_display(self, obj: PaymentRecord) -> str:
        """Display the amount formatted as currency."""
        return cents_display(obj.amount_cents)

    amount_display.short_description = "Amount"


@admin.register(Wallet)
class WalletAdmin(ReadOnlyLedgerAdmin):
    list_display = ["user_id", "credits", "updated_at"]
    search_fields = ["user_id"]
    readonly_fields = ["id", "user_id", "credits", "created_at", "updated_at"]
    ordering = ["-updated_at"]


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    """Affiliates are managed by operators; tier sets the commission rate."""

    list_display = ["code", "tier", "created_at"]
    list_filter = ["tier"]
    search_fields = ["code"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["code"]


@admin.register(AffiliateAttribution)
class AffiliateAttributionAdmin(admin.ModelAdmin):
    list_display = ["referred_user_id", "affiliate_code", "created_at"]
    search_fields = ["referred_user_id", "affiliate_code"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]


@admin.register(AffiliateCommission)
class AffiliateCommissionAdmin(ReadOnlyLedgerAdmin):
    list_display = [
        "affiliate_code",
        "referred_user_id",
        "amount_display",
        "status",
        "session_id",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["affiliate_code", "referred_user_id", "session_id"]
    readonly_fields = [
        "id",
        "affiliate_code",
        "referred_user_id",
        "amount_cents",
        "status",
        "session_id",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def amount_display(self, obj: AffiliateCommission) -> str:
        """Display the amount formatted as currency."""
        return cents_display(obj.amount_cents)

    amount_display.short_description = "Commission"


@admin.register(ReviewerPayoutAccount)
class ReviewerPayoutAccountAdmin(admin.ModelAdmin):
    """
    Admin configuration for ReviewerPayoutAccount.

    Provides visibility into Stripe Connect account status. Status fields
    are kept current by the account.updated webhook.
    """

    list_display = [
        "reviewer_id",
        "connect_account_id",
        "onboarding_status",
        "payouts_enabled",
        "charges_enabled",
        "created_at",
    ]
    list_filter = ["onboarding_status", "payouts_enabled", "charges_enabled"]
    search_fields = ["reviewer_id", "connect_account_id"]
    readonly_fields = [
        "id",
        "onboarding_status",
        "payouts_enabled",
        "charges_enabled",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(ReviewerBalance)
class ReviewerBalanceAdmin(ReadOnlyLedgerAdmin):
    list_display = ["reviewer_id", "available_display", "paid_display", "version"]
    search_fields = ["reviewer_id"]
    readonly_fields = [
        "id",
        "reviewer_id",
        "available_cents",
        "paid_cents",
        "version",
        "created_at",
        "updated_at",
    ]
    ordering = ["-updated_at"]

    def available_display(self, obj: ReviewerBalance) -> str:
        return cents_display(obj.available_cents)

    available_display.short_description = "Available"

    def paid_display(self, obj: ReviewerBalance) -> str:
        return cents_display(obj.paid_cents)

    paid_display.short_description = "Paid"


@admin.register(PayoutRequest)
class PayoutRequestAdmin(ReadOnlyLedgerAdmin):
    """
    Admin configuration for PayoutRequest.

    Status changes go through PayoutAuthorizer: pay via the API endpoint,
    reject via the bulk action below.
    """

    list_display = [
        "id",
        "reviewer_id",
        "amount_display",
        "status",
        "transfer_id",
        "paid_at",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["id", "reviewer_id", "transfer_id"]
    readonly_fields = [
        "id",
        "reviewer_id",
        "amount_cents",
        "currency",
        "status",
        "transfer_id",
        "reserved_at",
        "paid_at",
        "rejected_at",
        "rejection_reason",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["reject_requests"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "reviewer_id", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount_cents", "currency"),
            },
        ),
        (
            "Stripe Details",
            {
                "fields": ("transfer_id", "reserved_at", "paid_at"),
            },
        ),
        (
            "Rejection",
            {
                "fields": ("rejected_at", "rejection_reason"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: PayoutRequest) -> str:
        """Display the amount formatted as currency."""
        return cents_display(obj.amount_cents, obj.currency)

    amount_display.short_description = "Amount"

    @admin.action(description="Reject selected payout requests")
    def reject_requests(self, request, queryset):
        """Bulk action to reject requested payouts."""
        authorizer = PayoutAuthorizer()
        rejected = 0
        for payout_request in queryset:
            result = authorizer.reject_payout(
                payout_request.pk, reason=f"Rejected by {request.user}"
            )
            if result.success:
                rejected += 1
        self.message_user(request, f"Rejected {rejected} payout requests.")
