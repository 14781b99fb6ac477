"""GeoContext exception hierarchy.

All exceptions follow a three-part message pattern: what failed,
likely cause, and suggested fix.

Two families matter to callers of the orchestrator:

* ``LocationError`` subclasses are **fatal**: the context cannot be
  built without a position, so they propagate out of ``fetch_context``.
* ``ProviderError`` subclasses are **degraded** failures: the
  orchestrator absorbs them per source and reflects them only through
  optional fields and flags on the returned context.
"""

from __future__ import annotations


class GeoContextError(Exception):
    """Base exception for all GeoContext errors.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.

    Example:
        >>> raise GeoContextError(
        ...     what="Operation failed",
        ...     cause="Unexpected internal state",
        ...     fix="Please report this issue",
        ... )
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
    ) -> None:
        """Initialize with structured error context.

        Args:
            what: Description of what failed.
            cause: Likely cause of the failure.
            fix: Suggested action to resolve the issue.
        """
        self.what = what
        self.cause = cause
        self.fix = fix
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Build the multi-line error message from parts.

        Returns:
            Formatted message with optional Cause and Fix lines.
        """
        parts = [self.what]
        if self.cause:
            parts.append(f"Cause: {self.cause}")
        if self.fix:
            parts.append(f"Fix: {self.fix}")
        return "\n".join(parts)


class ConfigurationError(GeoContextError):
    """Raised for configuration, credential and provider-lookup errors.

    Example:
        >>> raise ConfigurationError(
        ...     what="Cannot read credentials file",
        ...     cause="File not found: ~/.geocontext/credentials.json",
        ...     fix="Create the file or set GEOCONTEXT_CREDENTIALS",
        ... )
    """


class LocationError(GeoContextError):
    """Base class for fatal failures of the location collaborator."""


class LocationUnavailableError(LocationError):
    """Raised when no position fix can be produced.

    Example:
        >>> raise LocationUnavailableError(
        ...     what="Unable to determine your location",
        ...     cause="No GPS or network fix available",
        ...     fix="Move to an area with better signal and try again",
        ... )
    """


class PermissionDeniedError(LocationError):
    """Raised when location access is denied, restricted or disabled."""


class LocationTimeoutError(LocationError):
    """Raised when the location read exceeds its mode-dependent deadline."""


class ProviderError(GeoContextError):
    """Raised for address, weather or POI source failures.

    Example:
        >>> raise ProviderError(
        ...     what="Open-Meteo request failed",
        ...     cause="HTTP 503 after 3 retries",
        ...     fix="Try again later",
        ... )
    """


class NoResultError(ProviderError):
    """Raised when reverse geocoding finds no address for a coordinate."""


class UnauthorizedError(ProviderError):
    """Raised when a provider rejects the configured credentials."""


class DeadlineExceededError(GeoContextError):
    """Raised by ``with_deadline`` when an operation outlives its deadline."""
