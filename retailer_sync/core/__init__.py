"""
Core module exports.
"""
from .enums import (
    DecisionKind,
    OutcomeKind,
    SyncStatus
)

from .exceptions import (
    BaseServiceError,
    ConfigurationError,
    RetailerNotFoundError,
    PlatformServiceError,
    SyncError,
    ShopifyServiceError,
    ShopifyAPIError,
    ShopifyTransportError,
    ShopifyGraphQLError
)

from .retry import (
    RetryPolicy,
    with_retry
)
