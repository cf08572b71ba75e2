"""
Tests for webhook event handlers.

Tests cover:
- Handler registration
- Dispatch of known, unknown and failing events
- account.updated onboarding status sync
"""

import pytest

from core.services import ServiceResult
from payments.exceptions import LedgerWriteFailedError
from payments.models import PaymentRecord, ReviewerPayoutAccount
from payments.state_machines import OnboardingStatus
from payments.tests.factories import ReviewerPayoutAccountFactory
from payments.webhooks.events import (
    ACCOUNT_UPDATED,
    PURCHASE_COMPLETED,
    VerifiedEvent,
)
from payments.webhooks.handlers import (
    EVENT_HANDLERS,
    dispatch_event,
    handle_account_updated,
    handle_purchase_completed,
    register_handler,
)


def _account_event(account: dict) -> VerifiedEvent:
    return VerifiedEvent.from_payload(
        {"id": "evt_acct", "type": "account.updated", "data": {"object": account}}
    )


# =============================================================================
# Handler Registration Tests
# =============================================================================


class TestRegisterHandler:
    """Tests for handler registration decorator."""

    def test_handlers_registered_at_import(self):
        assert EVENT_HANDLERS[PURCHASE_COMPLETED] == handle_purchase_completed
        assert EVENT_HANDLERS[ACCOUNT_UPDATED] == handle_account_updated

    def test_register_new_handler(self, mocker):
        """Should add a decorated handler to the registry."""
        mocker.patch.dict(EVENT_HANDLERS)

        @register_handler("test_event")
        def test_handler(event):
            return ServiceResult.success("handled")

        assert EVENT_HANDLERS["test_event"] == test_handler


# =============================================================================
# Dispatch Tests
# =============================================================================


class TestDispatchEvent:
    """Tests for dispatch_event."""

    def test_dispatch_to_registered_handler(self, db, purchase_event):
        result = dispatch_event(purchase_event(session_id="cs_dispatch"))

        assert result.success
        assert PaymentRecord.objects.filter(session_id="cs_dispatch").exists()

    def test_dispatch_unknown_event_type(self, db):
        """Unknown event types are acknowledged without side effects."""
        event = VerifiedEvent.from_payload(
            {"id": "evt_x", "type": "invoice.paid", "data": {"object": {"id": "in_1"}}}
        )

        result = dispatch_event(event)

        assert result.success
        assert result.data is None
        assert PaymentRecord.objects.count() == 0

    def test_application_error_becomes_failure(self, db, purchase_event):
        result = dispatch_event(purchase_event(metadata={"user_id": "u1"}))

        assert not result.success
        assert result.error == "Missing metadata user_id/pack"
        assert result.error_code == "INVALID_METADATA"

    def test_ledger_failure_keeps_error_code(self, mocker, purchase_event):
        mocker.patch(
            "payments.webhooks.handlers.PurchaseReconciler.reconcile",
            side_effect=LedgerWriteFailedError("Ledger write failed for session s1"),
        )

        result = dispatch_event(purchase_event())

        assert not result.success
        assert result.error_code == "LEDGER_WRITE_FAILED"

    def test_unexpected_error_becomes_handler_failed(self, mocker, purchase_event):
        mocker.patch(
            "payments.webhooks.handlers.PurchaseReconciler.reconcile",
            side_effect=RuntimeError("boom"),
        )

        result = dispatch_event(purchase_event())

        assert not result.success
        assert result.error == "boom"
        assert result.error_code == "HANDLER_FAILED"


# =============================================================================
# account.updated Tests
# =============================================================================


@pytest.mark.django_db
class TestHandleAccountUpdated:
    """Tests for handle_account_updated."""

    @pytest.fixture
    def pending_account(self):
        return ReviewerPayoutAccountFactory(
            reviewer_id="r9",
            connect_account_id="acct_r9",
            onboarding_status=OnboardingStatus.PENDING,
            payouts_enabled=False,
            charges_enabled=False,
        )

    def test_complete_when_nothing_due(self, pending_account):
        result = handle_account_updated(
            _account_event(
                {
                    "id": "acct_r9",
                    "payouts_enabled": True,
                    "charges_enabled": True,
                    "requirements": {"currently_due": [], "past_due": []},
                }
            )
        )

        assert result.success
        pending_account.refresh_from_db()
        assert pending_account.onboarding_status == OnboardingStatus.COMPLETE
        assert pending_account.payouts_enabled is True
        assert pending_account.charges_enabled is True

    def test_in_progress_when_requirements_due(self, pending_account):
        handle_account_updated(
            _account_event(
                {
                    "id": "acct_r9",
                    "requirements": {"currently_due": ["individual.ssn_last_4"]},
                }
            )
        )

        pending_account.refresh_from_db()
        assert pending_account.onboarding_status == OnboardingStatus.IN_PROGRESS
        assert pending_account.payouts_enabled is False

    def test_rejected_when_disabled(self, pending_account):
        handle_account_updated(
            _account_event(
                {
                    "id": "acct_r9",
                    "requirements": {"disabled_reason": "rejected.terms_of_service"},
                }
            )
        )

        pending_account.refresh_from_db()
        assert pending_account.onboarding_status == OnboardingStatus.REJECTED

    def test_unknown_account_is_acknowledged(self):
        result = handle_account_updated(_account_event({"id": "acct_unknown"}))

        assert result.success
        assert result.data is None
        assert ReviewerPayoutAccount.objects.count() == 0
