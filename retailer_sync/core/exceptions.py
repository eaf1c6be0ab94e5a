from typing import Any, Dict, List, Optional


class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ConfigurationError(BaseServiceError):
    """Raised when a retailer or store is missing required configuration."""
    pass

class RetailerNotFoundError(BaseServiceError):
    """Raised when a retailer id is not present in the retailer configuration."""
    pass

class PlatformServiceError(BaseServiceError):
    """Base exception for platform service errors."""
    pass

class SyncError(PlatformServiceError):
    """Raised when a whole reconciliation pass cannot complete."""
    pass

class ShopifyServiceError(PlatformServiceError):
    """Base exception for Shopify-specific errors."""
    pass

class ShopifyAPIError(ShopifyServiceError):
    """Raised when a Shopify API call fails at the HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class ShopifyTransportError(ShopifyAPIError):
    """
    Raised for failures worth retrying: timeouts, dropped connections,
    429 throttling and 5xx responses.
    """
    pass

class ShopifyGraphQLError(ShopifyServiceError):
    """Raised when a GraphQL response carries a top-level ``errors`` list."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        message = "GraphQL query failed with errors:\n"
        for error in errors:
            if not isinstance(error, dict):
                error = {'message': str(error)}
            msg = error.get('message', 'Unknown error')
            path = error.get('path', [])
            message += f"- Message: {msg}, Path: {path}\n"
        super().__init__(message)
