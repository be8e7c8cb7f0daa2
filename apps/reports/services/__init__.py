"""Services for the issue report log."""

from .exceptions import (
    ReportsServiceError,
    ReportNotFoundError,
    InvalidReportError,
    ReportPermissionError,
)
from .report_log import (
    file_report,
    list_all_reports,
    list_my_reports,
    get_report,
    update_report,
)

__all__ = [
    # Exceptions
    'ReportsServiceError',
    'ReportNotFoundError',
    'InvalidReportError',
    'ReportPermissionError',
    # Services
    'file_report',
    'list_all_reports',
    'list_my_reports',
    'get_report',
    'update_report',
]
