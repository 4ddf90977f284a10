"""Custom exception hierarchy for the influence graph cache.

All application exceptions inherit from :class:`CrateError`, which carries
an optional ``provider_name`` so error handlers can identify which backend
(e.g. "sqlite_influence_graph") raised the failure.

    CrateError  (base -- catch-all for any crate error)
    +-- InvalidInputError   (bad kind, weight, depth, limit; nothing written)
    +-- StorageError        (disk / IO failure from the storage engine)
    +-- ConfigurationError  (startup / missing config)

Not-found and alias conflicts are *not* exceptions.  They come back as
structured results (see ``src/models/influence.py``) because callers treat
them as normal outcomes.
"""


class CrateError(Exception):
    """Base exception for all crate errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[sqlite_influence_graph] disk I/O error``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class InvalidInputError(CrateError):
    """Raised when an operation's arguments are rejected before any write."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(CrateError):
    """Raised when the underlying storage engine fails.

    Never retried at this layer.  The original engine exception is chained
    as ``__cause__``.
    """

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(CrateError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
