"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Tests talk plain HTTP to the test client
    settings.SECURE_SSL_REDIRECT = False

    # No Redis in tests; locks mock get_redis_connection directly
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full webhook/payout journeys)
    - test_views.py, test_handlers.py, test_*_service.py, etc. → integration
    - test_models.py, test_events.py, test_locks.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    # Filename patterns for each category
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_handlers.py",
        "test_purchase_reconciler.py",
        "test_payout_authorizer.py",
        "test_checkout.py",
        "test_onboarding.py",
        "test_admin.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_events.py",
        "test_verifier.py",
        "test_pricing.py",
        "test_state_transitions.py",
        "test_locks.py",
        "test_stripe_adapter.py",
        "test_services.py",
        "test_exceptions.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filepath = str(item.fspath)
        filename = filepath.split("/")[-1]

        # Check patterns in priority order
        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
