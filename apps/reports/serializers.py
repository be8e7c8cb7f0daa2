from rest_framework import serializers
from .models import Report, ReportStatus


# =============================================================================
# Input Serializers
# =============================================================================

class ReportCreateSerializer(serializers.Serializer):
    """Reporter identity comes from the session, never from the body."""

    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    metadata = serializers.JSONField(required=False, allow_null=True)


class ReportUpdateSerializer(serializers.Serializer):
    """
    Validate a report update.

    Fields:
        status (str): open, in_progress or resolved
        assigned_to (UUID): Staff user id, null to unassign
        metadata (object): Replacement metadata
    """

    status = serializers.ChoiceField(choices=ReportStatus.choices, required=False)
    assigned_to = serializers.UUIDField(required=False, allow_null=True)
    metadata = serializers.JSONField(required=False, allow_null=True)


# =============================================================================
# Output Serializers
# =============================================================================

class ReportSerializer(serializers.ModelSerializer):

    class Meta:
        model = Report
        fields = [
            'id',
            'reporter_id',
            'reporter_type',
            'title',
            'description',
            'status',
            'assigned_to',
            'metadata',
            'created_at',
            'updated_at',
            'resolved_at',
        ]
        read_only_fields = fields
