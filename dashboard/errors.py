"""Error taxonomy for the dashboard backend."""


class DashboardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500


class ConfigurationError(DashboardError):
    """A required credential or setting is missing."""

    status_code = 500


class UpstreamError(DashboardError):
    """An upstream service answered with a non-success response."""

    status_code = 502

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class UpstreamUnauthorized(UpstreamError):
    """The upstream service rejected our credential."""

    status_code = 403


class UpstreamTransientError(UpstreamError):
    """Network failure or 5xx from an upstream service."""

    status_code = 502


class CacheUnavailable(DashboardError):
    """The spreadsheet cache could not be read."""


class CacheWriteFailure(DashboardError):
    """The spreadsheet cache could not be written."""
