# oauth_broker/providers/errors.py
from typing import Any, Optional


class InputValidationError(ValueError):
    """A required request parameter is missing or empty."""


class MissingUserId(InputValidationError):
    def __init__(self, message: str = "Missing user_id"):
        super().__init__(message)


class MalformedState(ValueError):
    """The state round-trip token could not be decoded."""


class NoAuthorizationCode(Exception):
    """The callback arrived without an authorization code (consent denied or bare callback)."""


class ProviderNotConfigured(RuntimeError):
    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"{provider} OAuth not configured")


class ProviderExchangeError(Exception):
    """
    Any failure while talking to a provider: transport errors, non-2xx answers
    and responses missing the fields we need. `payload` keeps the provider's raw
    error body for the operator logs; it must never be echoed to the browser.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
