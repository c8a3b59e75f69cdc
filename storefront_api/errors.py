"""Error types raised by the storefront API services"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all errors raised by this service"""


class ConfigurationError(StorefrontError):
    """Mandatory configuration is missing or malformed (fatal at startup)"""


class ValidationError(StorefrontError):
    """Client request is missing required fields"""

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class GatewayError(StorefrontError):
    """Payment processor rejected or failed a request"""


class TransportError(StorefrontError):
    """Mail transport could not be built, verified or used"""

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service
