"""Domain exception hierarchy for the playground chat client."""

from __future__ import annotations


class PlaygroundError(RuntimeError):
    """Base class for all domain-level client errors."""


class CatalogFetchError(PlaygroundError):
    """Raised when the model catalog cannot be fetched or parsed."""


class DispatchError(PlaygroundError):
    """Base class for failures while sending a prompt to the provider."""


class InvalidEndpointError(DispatchError):
    """Raised when a resolved request URL is not an allowed endpoint."""


class ProviderError(DispatchError):
    """Raised when the provider answers with a non-success status."""


class MalformedResponseError(DispatchError):
    """Raised when a success response does not have the expected shape."""


class SubmissionRejected(PlaygroundError):
    """Raised when a submit precondition does not hold."""


class AttachmentError(PlaygroundError):
    """Raised when a file cannot be turned into an image attachment."""


class ConfigValidationError(PlaygroundError):
    """Raised when configuration cannot be validated safely."""
