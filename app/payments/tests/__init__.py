"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Ledger model constraints and defaults
- test_state_transitions.py: PayoutRequest transitions
- test_locks.py: DistributedLock and balance compare-and-swap
- test_pricing.py: Pack credits and commission rates
- test_views.py: API endpoint tests
- test_admin.py: Admin registrations and the reject action
- test_integration.py: Purchase and payout journeys over HTTP

Service, webhook and adapter tests live beside their packages.

Usage:
    pytest payments/tests/
    pytest payments/tests/test_views.py
"""
