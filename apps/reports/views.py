from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.identity import reporter_type_for
from .models import Report
from .serializers import ReportCreateSerializer, ReportSerializer, ReportUpdateSerializer
from . import services
from .services import InvalidReportError, ReportNotFoundError, ReportPermissionError

UUID_REGEX = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'


class ReportViewSet(viewsets.GenericViewSet):
    """
    Issue reports.

    create: File a report as the current identity
    list: All reports for owner/admin, own reports for everyone else
    mine: Own reports
    retrieve: Owner/admin or the reporter
    partial_update: Owner/admin only
    """

    queryset = Report.objects.all()
    serializer_class = ReportSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_REGEX

    @extend_schema(request=ReportCreateSerializer, responses={201: ReportSerializer})
    def create(self, request):
        """POST /api/reports/"""
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        identity = request.user
        try:
            report = services.file_report(
                reporter_id=identity.actor_id,
                reporter_type=reporter_type_for(identity),
                **serializer.validated_data,
            )
        except InvalidReportError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ReportSerializer(report).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: ReportSerializer(many=True)})
    def list(self, request):
        """GET /api/reports/"""
        identity = request.user
        if identity.is_privileged:
            reports = services.list_all_reports(identity=identity)
        else:
            reports = services.list_my_reports(reporter_id=identity.actor_id)
        return Response(ReportSerializer(reports, many=True).data)

    @extend_schema(responses={200: ReportSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def mine(self, request):
        """GET /api/reports/mine/"""
        reports = services.list_my_reports(reporter_id=request.user.actor_id)
        return Response(ReportSerializer(reports, many=True).data)

    @extend_schema(responses={200: ReportSerializer})
    def retrieve(self, request, pk=None):
        """GET /api/reports/{id}/"""
        try:
            report = services.get_report(report_id=pk)
        except ReportNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        identity = request.user
        if not identity.is_privileged and str(report.reporter_id) != identity.actor_id:
            return Response(
                {'error': 'You can only view your own reports.'},
                status=status.HTTP_403_FORBIDDEN
            )
        return Response(ReportSerializer(report).data)

    @extend_schema(request=ReportUpdateSerializer, responses={200: ReportSerializer})
    def partial_update(self, request, pk=None):
        """PATCH /api/reports/{id}/ (owner/admin)"""
        serializer = ReportUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = services.update_report(
                report_id=pk,
                identity=request.user,
                **serializer.validated_data,
            )
        except ReportPermissionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except ReportNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidReportError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ReportSerializer(report).data)
