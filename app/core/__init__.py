"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. No ledger rules live here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - VersionedMixin: Optimistic locking version counter

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - NotFoundError: Record not found
    - ConflictError: State conflicts (concurrent modification, locks)

Views (import from core.views):
    - health_check: Liveness/readiness endpoint

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import BaseApplicationError, ConflictError, NotFoundError

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "NotFoundError",
    "ConflictError",
]
