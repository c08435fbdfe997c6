"""
Shared building blocks for the marketplace apps.

Nothing in here knows about orders, escrow or returns.

    core.models            BaseModel (created_at / updated_at)
    core.model_mixins      UUIDPrimaryKeyMixin, VersionedMixin
    core.services          BaseService, ServiceResult
    core.exceptions        BaseApplicationError and its HTTP-mapped subclasses
    core.exception_handler api_exception_handler for DRF
    core.permissions       Role permissions (buyer, seller, admin)
    core.pagination        Cursor pagination on created_at
    core.views             health_check
"""
