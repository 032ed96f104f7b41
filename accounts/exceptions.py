"""Custom exceptions for the account sessions service"""

from typing import Optional


class AccountsError(Exception):
    """Base exception; status_code is the HTTP status the web layer answers with"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class ConflictError(AccountsError):
    """Resource already exists (duplicate email)"""
    status_code = 409


class UnauthorizedError(AccountsError):
    """Bad credentials or an invalid, expired or superseded token"""
    status_code = 401


class BadRequestError(AccountsError):
    """Request value outside the accepted set"""
    status_code = 400


class StoreError(AccountsError):
    """User store could not be read or written"""
    pass


class DuplicateEmailError(StoreError):
    """Store-level uniqueness violation on email"""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email '{email}' already exists", status_code=409)


class ConfigError(AccountsError):
    """Configuration error"""
    pass
