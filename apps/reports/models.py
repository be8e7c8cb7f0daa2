from django.db import models
import uuid


class ReporterType(models.TextChoices):
    MEMBER = 'member', 'Member'
    REPAIR_STAFF = 'repair_staff', 'Repair staff'
    USER = 'user', 'Owner/admin user'


class ReportStatus(models.TextChoices):
    OPEN = 'open', 'Open'
    IN_PROGRESS = 'in_progress', 'In progress'
    RESOLVED = 'resolved', 'Resolved'


class Report(models.Model):
    """
    Issue report filed by a member or staff user.

    ``reporter_id`` points at either a member or a staff user depending on
    ``reporter_type``, so it is stored as a plain UUID.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reporter_id = models.UUIDField(db_index=True)
    reporter_type = models.CharField(max_length=20, choices=ReporterType.choices)
    title = models.CharField(max_length=200)
    description = models.TextField()
    status = models.CharField(
        max_length=20,
        choices=ReportStatus.choices,
        default=ReportStatus.OPEN,
    )
    assigned_to = models.UUIDField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'reports'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='reports_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"
