"""
Exceptions for stormscan operations.
"""


class StormScanError(Exception):
    """Base exception for stormscan-related errors."""

    pass


class InvalidBoundsError(StormScanError, ValueError):
    """Bounding box is not usable for sampling (non-finite or inverted)."""

    pass


class ProviderError(StormScanError):
    """Error talking to the weather or marine provider."""

    pass


class ProviderConnectionError(ProviderError):
    """Provider unreachable, timed out, rate limited or temporarily down."""

    pass


class ProviderResponseError(ProviderError):
    """Provider rejected the request or returned a malformed payload."""

    pass


class RescueValidationError(StormScanError, ValueError):
    """Rescue request input is invalid; raised before any network call."""

    pass


class RescueSubmissionError(StormScanError):
    """The persistence sink did not accept the rescue request."""

    pass


class UnknownActionError(StormScanError, KeyError):
    """No handler is registered for the dispatched action name."""

    pass
