"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/stripe/ - Stripe webhook endpoint
    - POST /payouts/pay/ - Authorize and pay a payout request
    - POST /payouts/reject/ - Reject a payout request
    - POST /checkout/ - Create checkout session
    - POST /connect/onboarding/ - Start Connect onboarding

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import (
    CheckoutSessionView,
    ConnectOnboardingView,
    PayoutPayView,
    PayoutRejectView,
)
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    # Operator endpoints
    path("payouts/pay/", PayoutPayView.as_view(), name="payout_pay"),
    path("payouts/reject/", PayoutRejectView.as_view(), name="payout_reject"),
    # Customer / reviewer endpoints
    path("checkout/", CheckoutSessionView.as_view(), name="checkout"),
    path(
        "connect/onboarding/",
        ConnectOnboardingView.as_view(),
        name="connect_onboarding",
    ),
]
