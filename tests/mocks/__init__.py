from .mock_store import MockShopifyStore
