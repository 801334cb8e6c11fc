"""
Domain error taxonomy.

Services raise these; ``ratemyride.api.errors`` turns them into
``{"error": message}`` JSON responses with the matching status code.
The message of a 5xx error is what the caller sees, so raise sites pass a
safe summary and chain the underlying exception with ``from``.
"""

from __future__ import annotations


class RateMyRideError(Exception):
    """Base class for all errors the API knows how to render."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class InvalidInput(RateMyRideError):
    status_code = 400


class InvalidAmount(InvalidInput):
    """Tip amount outside the accepted range."""


class NotFound(RateMyRideError):
    status_code = 404


class AuthenticationFailure(RateMyRideError):
    status_code = 400


class InvalidSignature(AuthenticationFailure):
    """Webhook signature missing or not valid for the configured secret."""


class DownstreamFailure(RateMyRideError):
    """Database or payment processor failure."""

    status_code = 500


class WebhookProcessingError(DownstreamFailure):
    """A verified webhook could not be applied; Stripe will redeliver it."""
