"""
Issue report log.

Reports are created ``open`` and afterwards only change status,
assignee and metadata. Reading all reports and changing any report are
reserved for owners and admins.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..models import Report, ReporterType, ReportStatus
from .exceptions import InvalidReportError, ReportNotFoundError, ReportPermissionError

logger = logging.getLogger(__name__)

_UNSET = object()


def _require_privileged(identity, action):
    if not identity.is_privileged:
        raise ReportPermissionError(f"Only owners and admins may {action}")


@transaction.atomic
def file_report(
    *,
    reporter_id,
    reporter_type: str,
    title: str,
    description: str,
    metadata=None,
) -> Report:
    """
    File a new report.

    Args:
        reporter_id: Member or staff user id
        reporter_type: ``member``, ``repair_staff`` or ``user``
        title: Non-empty title
        description: Non-empty description
        metadata: Optional JSON-serializable context

    Returns:
        Created Report with status ``open``

    Raises:
        InvalidReportError: If title or description is blank, or the
            reporter type is unknown
    """
    title = (title or '').strip()
    description = (description or '').strip()
    if not title:
        raise InvalidReportError("Title is required")
    if not description:
        raise InvalidReportError("Description is required")
    if reporter_type not in ReporterType.values:
        raise InvalidReportError(f"Unknown reporter type: {reporter_type}")

    report = Report.objects.create(
        reporter_id=reporter_id,
        reporter_type=reporter_type,
        title=title,
        description=description,
        metadata=metadata,
    )
    logger.info("Report %s filed by %s %s", report.pk, reporter_type, reporter_id)
    return report


def list_all_reports(*, identity):
    """
    Every report, newest first.

    Raises:
        ReportPermissionError: Unless the caller is owner or admin
    """
    _require_privileged(identity, "list all reports")
    return list(Report.objects.order_by('-created_at'))


def list_my_reports(*, reporter_id):
    """Reports filed by one reporter, newest first."""
    return list(Report.objects.filter(reporter_id=reporter_id).order_by('-created_at'))


def get_report(*, report_id) -> Report:
    try:
        return Report.objects.get(pk=report_id)
    except (Report.DoesNotExist, ValidationError):
        raise ReportNotFoundError(f"Report {report_id} not found")


@transaction.atomic
def update_report(
    *,
    report_id,
    identity,
    status=None,
    assigned_to=_UNSET,
    metadata=_UNSET,
) -> Report:
    """
    Change a report's status, assignee or metadata.

    Moving into ``resolved`` stamps ``resolved_at``. Moving out of
    ``resolved`` keeps the earlier stamp.

    Args:
        report_id: Report primary key
        identity: Caller; must be owner or admin
        status: New status, or None to keep it
        assigned_to: Staff user id, None to unassign; omit to keep
        metadata: Replacement metadata; omit to keep

    Raises:
        ReportPermissionError: Unless the caller is owner or admin
        ReportNotFoundError: If the report does not exist
        InvalidReportError: If status is unknown
    """
    _require_privileged(identity, "update reports")

    try:
        report = Report.objects.select_for_update().get(pk=report_id)
    except (Report.DoesNotExist, ValidationError):
        raise ReportNotFoundError(f"Report {report_id} not found")

    fields = ['updated_at']

    if status is not None:
        if status not in ReportStatus.values:
            raise InvalidReportError(f"Unknown status: {status}")
        if status == ReportStatus.RESOLVED and report.status != ReportStatus.RESOLVED:
            report.resolved_at = timezone.now()
            fields.append('resolved_at')
        if status != report.status:
            logger.info("Report %s status %s -> %s by %s", report.pk, report.status, status, identity.actor_id)
        report.status = status
        fields.append('status')

    if assigned_to is not _UNSET:
        report.assigned_to = assigned_to
        fields.append('assigned_to')

    if metadata is not _UNSET:
        report.metadata = metadata
        fields.append('metadata')

    report.save(update_fields=fields)
    return report
