"""
Schema exports for the application.
"""

from .retailer import RetailerConfig, RetailerSettings, StoreCredentials
