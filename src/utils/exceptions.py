"""Exception classes for the sales report I/O collaborators.

The normalization core never raises; these cover configuration, vendor
fetches, uploads, file export and email delivery.
"""


class SalesReportError(Exception):
    """Base exception for the sales report pipeline."""

    pass


class ConfigError(SalesReportError):
    """Configuration-related errors."""

    pass


class FetchError(SalesReportError):
    """Vendor API errors (network, authentication, rate limits)."""

    pass


class InvalidUploadError(SalesReportError):
    """Uploaded sales CSV is empty or unreadable."""

    pass


class ExportError(SalesReportError):
    """Report file could not be written."""

    pass


class NotificationError(SalesReportError):
    """Email notification could not be delivered."""

    pass
