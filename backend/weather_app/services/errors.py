"""Domain errors raised by the subscription lifecycle."""
from __future__ import annotations


class SubscriptionError(Exception):
    """Base class for subscription lifecycle failures."""


class SubscriptionValidationError(SubscriptionError):
    """Raised when signup input is malformed. Nothing has touched storage."""


class UserAlreadyExistsError(SubscriptionError):
    """Raised when an email is already subscribed."""


class TokenEmptyError(SubscriptionError):
    """Raised when an empty token value is presented."""


class TokenNotFoundError(SubscriptionError):
    """Raised when no token with the presented value exists."""


class TokenWrongTypeError(SubscriptionError):
    """Raised when a token is used for the other purpose. The token is left intact."""


class ConfirmationMailError(SubscriptionError):
    """
    Raised when the confirmation email could not be sent.
    The subscription itself is already committed and is not rolled back.
    """
