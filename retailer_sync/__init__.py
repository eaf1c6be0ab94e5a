"""Inventory reconciliation between the LGL store and retailer Shopify storefronts."""

__version__ = "1.0.0"
