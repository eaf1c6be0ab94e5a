from .client import ShopifyGraphQLClient
from .pacing import RequestPacer
