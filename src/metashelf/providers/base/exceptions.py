"""Provider and request exceptions.

``status_code`` is the HTTP status the API layer renders the error with.
"""


class MetashelfError(Exception):
    """Base exception for metashelf errors."""

    status_code = 500


class ClientError(MetashelfError):
    """Raised for problems with the caller's request. Never retried."""

    status_code = 400


class MissingParameterError(ClientError):
    """Raised when a required provider parameter is absent."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required parameter: {name}")
        self.name = name


class InvalidParameterError(ClientError):
    """Raised when a supplied parameter fails its validation rule."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid parameter {name}: {reason}")
        self.name = name
        self.reason = reason


class UnknownParameterError(ClientError):
    """Raised when a supplied parameter is not declared by the provider."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown parameter: {name}")
        self.name = name


class MissingQueryFieldError(ClientError):
    """Raised when a required query-string field is absent."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required query parameter: {field}")
        self.field = field


class ProviderNotFoundError(ClientError):
    """Raised when no provider is registered under the requested id."""

    status_code = 404

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider not found: {provider_id}")
        self.provider_id = provider_id


class LookupNotSupportedError(ClientError):
    """Raised when a provider has no direct item lookup."""

    status_code = 404

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider does not support book lookup: {provider_id}")
        self.provider_id = provider_id


class BookNotFoundError(ClientError):
    """Raised when a direct lookup finds nothing."""

    status_code = 404

    def __init__(self, book_id: str) -> None:
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


class UpstreamError(MetashelfError):
    """Raised when a provider's upstream call fails (transport or non-2xx status)."""


class ProviderFailureError(MetashelfError):
    """Raised when a provider fails with an unexpected exception."""


class PluginLoadError(MetashelfError):
    """Raised when a provider plugin cannot be loaded."""


class DuplicateProviderError(PluginLoadError):
    """Raised when a provider id is registered twice and duplicates are rejected."""
