"""
URL configuration for the ledger service.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /api/v1/payments/              - Payment endpoints
        webhooks/stripe/           - Stripe webhook endpoint (POST, signed)
        checkout/                  - Start a credit pack checkout session
        connect/onboarding/        - Reviewer Connect onboarding link
        payouts/pay/               - Authorize a payout request (admin)
        payouts/reject/            - Reject a payout request (admin)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Ledger Admin"
admin.site.site_title = "Ledger Admin Portal"
admin.site.index_title = "Payments, wallets and payouts"
