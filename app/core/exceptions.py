"""
Custom exceptions for the application

Every exception carries the HTTP status it maps to at the request boundary.
"""


class BaseAppException(Exception):
    """Base application exception"""
    status_code = 500

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ConfigurationError(BaseAppException):
    """Raised when a required server-side setting (e.g. a secret) is missing"""
    status_code = 500


class AuthenticationError(BaseAppException):
    """Raised when a webhook signature is missing or invalid"""
    status_code = 401

    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"

    def __init__(self, message: str, reason: str, details=None):
        super().__init__(message, details)
        self.reason = reason


class MalformedPayloadError(BaseAppException):
    """Raised when an authenticated webhook body cannot be decoded"""
    status_code = 400


class ValidationError(BaseAppException):
    """Raised when validation fails"""
    status_code = 400


class NotFoundError(BaseAppException):
    """Raised when a resource is not found"""
    status_code = 404


class ConflictError(BaseAppException):
    """Raised when a uniqueness constraint would be violated"""
    status_code = 400


class StoreError(BaseAppException):
    """Raised when database operations fail"""
    status_code = 500
