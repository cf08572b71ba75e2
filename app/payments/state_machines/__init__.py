"""
State machine enums for ledger models.

PayoutRequest transitions are declared on the model with django-fsm.
"""

from payments.state_machines.states import (
    AffiliateTier,
    CommissionStatus,
    CreditPack,
    OnboardingStatus,
    PaymentStatus,
    PayoutRequestStatus,
)

__all__ = [
    "AffiliateTier",
    "CommissionStatus",
    "CreditPack",
    "OnboardingStatus",
    "PaymentStatus",
    "PayoutRequestStatus",
]
