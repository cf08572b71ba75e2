"""
Webhook handling for payment events from Stripe.

Modules:
- events: Typed views of verified events (VerifiedEvent, PurchaseCompleted)
- verifier: EventVerifier, signature check over the raw body
- handlers: Handler registry and dispatch_event
- views: The stripe_webhook HTTP endpoint

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""
