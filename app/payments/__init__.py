"""
Payments app: Stripe events in, ledger state out.

This app handles:
- Webhook verification (payments.webhooks.verifier)
- Event dispatch to registered handlers (payments.webhooks.handlers)
- Purchase reconciliation (payments.services.purchase_reconciler)
- Payout authorization (payments.services.payout_authorizer)
- Checkout and Connect onboarding links (payments.services)

Usage:
    from payments.conf import PaymentsConfig
    from payments.services import PayoutAuthorizer

    result = PayoutAuthorizer(PaymentsConfig.from_settings()).authorize_payout(request_id)
"""
