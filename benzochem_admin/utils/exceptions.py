"""
Custom Error Classes for Better Error Handling
"""


class AdminServiceError(Exception):
    """Base exception for the admin service"""

    pass


class AuthenticationError(AdminServiceError):
    """Authentication related errors"""

    pass


class APIKeyNotFoundError(AdminServiceError, LookupError):
    """Raised when an API key id has no matching record"""

    pass


class APIKeyValidationError(AdminServiceError, ValueError):
    """Raised when API key create/update input is malformed"""

    pass


class AdminValidationError(AdminServiceError, ValueError):
    """Raised when admin account input is invalid"""

    pass


class DraftItemNotFoundError(AdminServiceError, LookupError):
    """Raised when a draft quotation item does not exist"""

    pass
