"""
Error taxonomy for the Salla OAuth strategy.

Every failure in the login flow surfaces as one of these types.
Nothing here is retried: authorization codes are single-use.
"""


class SallaOAuthError(Exception):
    """Base class for all strategy errors."""


class ConfigurationError(SallaOAuthError):
    """Strategy was constructed with missing or invalid settings."""


class TransportError(SallaOAuthError):
    """The provider could not be reached (connection, DNS, timeout)."""


class MalformedResponseError(SallaOAuthError):
    """The provider answered with a body that is not the JSON we expect."""

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class TokenExchangeError(SallaOAuthError):
    """
    The token endpoint rejected the grant or could not be reached.

    For transport failures ``__cause__`` is a TransportError.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: str | None = None,
        description: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.description = description


class ProfileFetchError(SallaOAuthError):
    """The user-info call failed after a valid token was obtained."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MerchantAPIError(SallaOAuthError):
    """A merchant API call (orders, customers) failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationFailedError(SallaOAuthError):
    """The callback could not be turned into an authenticated user."""


class StateMismatchError(AuthenticationFailedError):
    """The ``state`` echoed by the provider does not match the one we issued."""
