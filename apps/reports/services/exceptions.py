"""Domain-specific exceptions for reports services."""


class ReportsServiceError(Exception):
    """Base exception for reports services."""
    pass


class ReportNotFoundError(ReportsServiceError):
    """Raised when report does not exist."""
    pass


class InvalidReportError(ReportsServiceError):
    """Raised when report input is missing or invalid."""
    pass


class ReportPermissionError(ReportsServiceError):
    """Raised when the caller's role may not perform the operation."""
    pass
