"""
DRF serializers for payments app.

This module provides request serializers for:
- Payout authorization and rejection (operator endpoints)
- Checkout session creation
- Stripe Connect onboarding

Related files:
    - views.py: Payment API views
    - services/: Business logic the views delegate to

Usage:
    serializer = PayoutPaySerializer(data=request.data)
    if not serializer.is_valid():
        ...
"""

from __future__ import annotations

from rest_framework import serializers

from payments.state_machines import CreditPack


class PayoutPaySerializer(serializers.Serializer):
    """
    Serializer for paying a payout request.

    Fields:
        payout_request_id: ID of the PayoutRequest to authorize
    """

    payout_request_id = serializers.CharField(
        max_length=64,
        error_messages={
            "required": "Missing payout_request_id",
            "blank": "Missing payout_request_id",
            "null": "Missing payout_request_id",
        },
        help_text="PayoutRequest ID",
    )


class PayoutRejectSerializer(PayoutPaySerializer):
    """
    Serializer for rejecting a payout request.

    Fields:
        payout_request_id: ID of the PayoutRequest to reject
        reason: Operator-supplied reason
    """

    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=1000,
        help_text="Why the request was rejected",
    )


class CreateCheckoutSessionSerializer(serializers.Serializer):
    """
    Serializer for checkout session creation.

    Fields:
        pack: Credit pack to buy (starter, pro, studio)
        user_id: Purchasing user
        affiliate_code: Optional referral code
        success_url: URL to redirect on success (defaults from settings)
        cancel_url: URL to redirect on cancel (defaults from settings)
    """

    pack = serializers.ChoiceField(
        choices=CreditPack.choices,
        error_messages={"invalid_choice": "Unknown pack: {input}"},
    )
    user_id = serializers.CharField(max_length=255)
    affiliate_code = serializers.CharField(
        max_length=64,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    success_url = serializers.URLField(required=False)
    cancel_url = serializers.URLField(required=False)

    def validate_user_id(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("This field may not be blank.")
        return value

    def validate_affiliate_code(self, value: str | None) -> str | None:
        return (value or "").strip() or None


class ConnectOnboardingSerializer(serializers.Serializer):
    """
    Serializer for starting Stripe Connect onboarding.

    Fields:
        reviewer_id: Reviewer to onboard
        return_url: Where Stripe sends the reviewer afterwards
        refresh_url: Where Stripe sends the reviewer if the link expired
    """

    reviewer_id = serializers.CharField(
        max_length=255,
        error_messages={
            "required": "Missing reviewer_id",
            "blank": "Missing reviewer_id",
            "null": "Missing reviewer_id",
        },
    )
    return_url = serializers.URLField()
    refresh_url = serializers.URLField(required=False, allow_blank=True)
