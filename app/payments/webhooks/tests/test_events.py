"""
Tests for typed event decoding.

Tests cover:
- VerifiedEvent shape validation and type mapping
- PurchaseCompleted metadata validation and trimming
- AccountUpdated requirement counting
"""

import pytest

from payments.exceptions import InvalidEventPayloadError, InvalidMetadataError
from payments.tests.conftest import build_checkout_event
from payments.webhooks.events import (
    ACCOUNT_UPDATED,
    PURCHASE_COMPLETED,
    AccountUpdated,
    PurchaseCompleted,
    VerifiedEvent,
)


def _purchase(**kwargs) -> PurchaseCompleted:
    return PurchaseCompleted.from_event(
        VerifiedEvent.from_payload(build_checkout_event(**kwargs))
    )


# =============================================================================
# VerifiedEvent
# =============================================================================


class TestVerifiedEvent:
    """Tests for VerifiedEvent.from_payload."""

    def test_maps_checkout_completed(self):
        event = VerifiedEvent.from_payload(build_checkout_event())

        assert event.id == "evt_test_1"
        assert event.type == PURCHASE_COMPLETED
        assert event.provider_type == "checkout.session.completed"
        assert event.data_object["id"] == "cs_test_1"
        assert event.livemode is False

    def test_maps_account_updated(self):
        event = VerifiedEvent.from_payload(
            {"id": "evt_2", "type": "account.updated", "data": {"object": {}}}
        )

        assert event.type == ACCOUNT_UPDATED

    def test_unmapped_type_passes_through(self):
        """Unknown provider types keep their name so dispatch can ignore them."""
        event = VerifiedEvent.from_payload(
            {"id": "evt_3", "type": "invoice.paid", "data": {"object": {}}}
        )

        assert event.type == "invoice.paid"

    @pytest.mark.parametrize(
        "payload, message",
        [
            ([1, 2, 3], "event body is not a JSON object"),
            ({"type": "account.updated", "data": {"object": {}}}, "missing event id"),
            ({"id": "evt_1", "data": {"object": {}}}, "missing event type"),
            ({"id": "evt_1", "type": "account.updated"}, "missing data.object"),
            (
                {"id": "evt_1", "type": "account.updated", "data": {"object": "x"}},
                "missing data.object",
            ),
        ],
    )
    def test_rejects_malformed_bodies(self, payload, message):
        with pytest.raises(InvalidEventPayloadError, match=message):
            VerifiedEvent.from_payload(payload)


# =============================================================================
# PurchaseCompleted
# =============================================================================


class TestPurchaseCompleted:
    """Tests for PurchaseCompleted.from_event."""

    def test_decodes_session(self):
        purchase = _purchase(
            session_id="s1",
            amount_total=9900,
            metadata={"user_id": "u1", "pack": "pro", "affiliate_code": "AFF1"},
        )

        assert purchase.session_id == "s1"
        assert purchase.amount_total_cents == 9900
        assert purchase.user_id == "u1"
        assert purchase.pack == "pro"
        assert purchase.affiliate_code == "AFF1"
        assert purchase.event_id == "evt_test_1"

    def test_trims_metadata(self):
        purchase = _purchase(
            metadata={"user_id": "  u1 ", "pack": " pro", "affiliate_code": "   "}
        )

        assert purchase.user_id == "u1"
        assert purchase.pack == "pro"
        assert purchase.affiliate_code is None

    def test_missing_amount_is_zero(self):
        assert _purchase(amount_total=None).amount_total_cents == 0

    @pytest.mark.parametrize(
        "metadata",
        [
            {"pack": "pro"},
            {"user_id": "u1"},
            {"user_id": "   ", "pack": "pro"},
            {},
        ],
    )
    def test_missing_user_or_pack(self, metadata):
        with pytest.raises(InvalidMetadataError) as exc_info:
            _purchase(metadata=metadata)

        assert exc_info.value.message == "Missing metadata user_id/pack"
        assert exc_info.value.error_code == "INVALID_METADATA"

    @pytest.mark.parametrize("amount", ["9900", 99.0, True])
    def test_non_integer_amount(self, amount):
        with pytest.raises(InvalidMetadataError, match="amount_total must be an integer"):
            _purchase(amount_total=amount)

    def test_negative_amount(self):
        with pytest.raises(InvalidMetadataError, match="must not be negative"):
            _purchase(amount_total=-1)

    def test_missing_session_id(self):
        with pytest.raises(InvalidMetadataError, match="Missing checkout session id"):
            _purchase(session_id="")

    def test_non_object_metadata(self):
        with pytest.raises(InvalidMetadataError, match="metadata must be an object"):
            _purchase(metadata=["u1", "pro"])

    def test_non_string_metadata_value(self):
        with pytest.raises(InvalidMetadataError, match="user_id must be a string"):
            _purchase(metadata={"user_id": 42, "pack": "pro"})


# =============================================================================
# AccountUpdated
# =============================================================================


def _account_event(account: dict) -> VerifiedEvent:
    return VerifiedEvent.from_payload(
        {"id": "evt_acct", "type": "account.updated", "data": {"object": account}}
    )


class TestAccountUpdated:
    """Tests for AccountUpdated.from_event."""

    def test_counts_due_requirements(self):
        update = AccountUpdated.from_event(
            _account_event(
                {
                    "id": "acct_1",
                    "payouts_enabled": False,
                    "charges_enabled": True,
                    "requirements": {
                        "currently_due": ["individual.dob.day"],
                        "past_due": ["external_account"],
                    },
                }
            )
        )

        assert update.account_id == "acct_1"
        assert update.payouts_enabled is False
        assert update.charges_enabled is True
        assert update.requirements_due == 2
        assert update.disabled_reason is None

    def test_missing_requirements(self):
        update = AccountUpdated.from_event(_account_event({"id": "acct_1"}))

        assert update.requirements_due == 0

    def test_disabled_reason(self):
        update = AccountUpdated.from_event(
            _account_event(
                {
                    "id": "acct_1",
                    "requirements": {"disabled_reason": "rejected.fraud"},
                }
            )
        )

        assert update.disabled_reason == "rejected.fraud"

    def test_missing_account_id(self):
        with pytest.raises(InvalidMetadataError, match="Missing account id"):
            AccountUpdated.from_event(_account_event({}))
