# orders/services/exceptions.py

"""
ORDER / CHECKOUT SERVICE ERRORS

Centralized domain errors for checkout, lifecycle and provider calls.
Each error carries the HTTP status the API layer answers with
(see orders/views/errors.py).
"""


class CheckoutError(Exception):
    """Base checkout exception (bad cart or address)."""

    status_code = 400


class EmptyCartError(CheckoutError):
    """No valid line remained after discarding bad entries."""


class ProductUnavailableError(CheckoutError):
    """A referenced product is missing, malformed or inactive."""

    status_code = 404


class InvalidAddressError(CheckoutError):
    """Destination address failed validation."""


class OrderNotFoundError(Exception):
    status_code = 404


class OrderStateError(Exception):
    """Transition not allowed from the order's current state."""

    status_code = 409


class UpstreamProviderError(Exception):
    """
    Payment or courier provider failed or answered with an unexpected shape.

    upstream_status is the provider's HTTP status when it answered with an
    error status (e.g. 401 for an expired bearer token), otherwise None.
    """

    status_code = 502

    def __init__(self, message="", *, upstream_status=None):
        super().__init__(message)
        self.upstream_status = upstream_status


class ProviderTimeoutError(UpstreamProviderError):
    status_code = 504
