from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import (
    IsMemberSelfOrStaff,
    IsPrivilegedIdentity,
    IsStaffIdentity,
)
from .models import Member, MemberLevel
from .serializers import (
    HistoryQuerySerializer,
    MemberCreateSerializer,
    MemberLevelInputSerializer,
    MemberLevelSerializer,
    MemberSerializer,
    MemberUpdateSerializer,
    PointsAdjustInputSerializer,
    PointsInputSerializer,
    PointsTransactionSerializer,
    WalletAdjustInputSerializer,
    WalletInputSerializer,
    WalletTransactionSerializer,
)
from . import services
from .services import (
    DuplicateEmailError,
    InsufficientFundsError,
    InsufficientPointsError,
    InvalidAmountError,
    InvalidLevelError,
    MemberNotFoundError,
)

UUID_REGEX = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'

LIMIT_PARAMETER = OpenApiParameter(
    name='limit',
    type=int,
    description='Maximum number of entries, newest first (default 50)',
)


def ledger_error_response(error):
    """Map a ledger domain error onto an HTTP response."""
    if isinstance(error, MemberNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, InvalidAmountError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_409_CONFLICT
    return Response({'error': str(error)}, status=code)


class MemberPagination(PageNumberPagination):
    """Custom pagination for members."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class MemberViewSet(viewsets.ModelViewSet):
    """
    ViewSet for members and their ledgers.

    list/create/update/destroy: staff only
    retrieve, ledger history: the member themself or staff
    ledger postings: staff only (adjustments: owner/admin)
    """

    queryset = Member.objects.all()
    serializer_class = MemberSerializer
    permission_classes = [IsAuthenticated, IsStaffIdentity]
    pagination_class = MemberPagination
    lookup_value_regex = UUID_REGEX
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']

    def get_permissions(self):
        """Use different permissions for different actions."""
        if self.action in ['retrieve', 'points_transactions', 'wallet_transactions']:
            return [IsAuthenticated(), IsMemberSelfOrStaff()]
        if self.action in ['adjust_points', 'adjust_wallet']:
            return [IsAuthenticated(), IsPrivilegedIdentity()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
        return queryset

    @extend_schema(request=MemberCreateSerializer, responses={201: MemberSerializer})
    def create(self, request, *args, **kwargs):
        serializer = MemberCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            member = services.create_member(**serializer.validated_data)
        except DuplicateEmailError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(MemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=MemberUpdateSerializer, responses={200: MemberSerializer})
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = MemberUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        try:
            member = services.update_member(member_id=kwargs['pk'], **serializer.validated_data)
        except MemberNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except DuplicateEmailError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(MemberSerializer(member).data)

    def destroy(self, request, *args, **kwargs):
        try:
            services.delete_member(member_id=kwargs['pk'])
        except MemberNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _post_ledger_entry(self, request, pk, operation, input_class, output_class, default_description):
        serializer = input_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data['description'] = data.get('description') or default_description
        if 'reference_id' in data and not data['reference_id']:
            data['reference_id'] = None

        try:
            entry = operation(member_id=pk, **data)
        except (MemberNotFoundError, InvalidAmountError, InsufficientPointsError, InsufficientFundsError) as e:
            return ledger_error_response(e)

        return Response(output_class(entry).data, status=status.HTTP_201_CREATED)

    # -------------------------------------------------------------------------
    # Points
    # -------------------------------------------------------------------------

    @extend_schema(request=PointsInputSerializer, responses={201: PointsTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='points/add', url_name='points-add')
    def add_points(self, request, pk=None):
        """
        Credit earned points.

        POST /api/members/{id}/points/add/
        Body: {"amount": 500, "description": "bonus", "reference_id": "..."}
        """
        return self._post_ledger_entry(
            request, pk, services.add_points,
            PointsInputSerializer, PointsTransactionSerializer, 'Points added',
        )

    @extend_schema(request=PointsInputSerializer, responses={201: PointsTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='points/spend', url_name='points-spend')
    def spend_points(self, request, pk=None):
        """
        Redeem points. 409 when the balance is too low.

        POST /api/members/{id}/points/spend/
        """
        return self._post_ledger_entry(
            request, pk, services.spend_points,
            PointsInputSerializer, PointsTransactionSerializer, 'Points spent',
        )

    @extend_schema(request=PointsAdjustInputSerializer, responses={201: PointsTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='points/adjust', url_name='points-adjust')
    def adjust_points(self, request, pk=None):
        """Signed correction (owner/admin)."""
        return self._post_ledger_entry(
            request, pk, services.adjust_points,
            PointsAdjustInputSerializer, PointsTransactionSerializer, 'Points adjustment',
        )

    @extend_schema(
        parameters=[LIMIT_PARAMETER],
        responses={200: PointsTransactionSerializer(many=True)},
    )
    @action(detail=True, methods=['get'], url_path='points/transactions', url_name='points-transactions')
    def points_transactions(self, request, pk=None):
        """
        Points history, newest first.

        GET /api/members/{id}/points/transactions/?limit=N
        """
        member = self.get_object()
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        entries = services.list_points_transactions(
            member_id=member.pk,
            limit=query.validated_data.get('limit'),
        )
        return Response(PointsTransactionSerializer(entries, many=True).data)

    # -------------------------------------------------------------------------
    # Wallet
    # -------------------------------------------------------------------------

    @extend_schema(request=WalletInputSerializer, responses={201: WalletTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='wallet/topup', url_name='wallet-topup')
    def top_up_wallet(self, request, pk=None):
        """
        Add money to the wallet.

        POST /api/members/{id}/wallet/topup/
        Body: {"amount": "25.00", "description": "Cash"}
        """
        serializer = WalletInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            entry = services.top_up_wallet(
                member_id=pk,
                amount=serializer.validated_data['amount'],
                description=serializer.validated_data.get('description') or 'Wallet top-up',
            )
        except (MemberNotFoundError, InvalidAmountError) as e:
            return ledger_error_response(e)

        return Response(WalletTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=WalletInputSerializer, responses={201: WalletTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='wallet/deduct', url_name='wallet-deduct')
    def deduct_wallet(self, request, pk=None):
        """
        Pay from the wallet. 409 when funds are insufficient.

        POST /api/members/{id}/wallet/deduct/
        """
        return self._post_ledger_entry(
            request, pk, services.deduct_wallet,
            WalletInputSerializer, WalletTransactionSerializer, 'Payment',
        )

    @extend_schema(request=WalletInputSerializer, responses={201: WalletTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='wallet/refund', url_name='wallet-refund')
    def refund_wallet(self, request, pk=None):
        """POST /api/members/{id}/wallet/refund/"""
        return self._post_ledger_entry(
            request, pk, services.refund_wallet,
            WalletInputSerializer, WalletTransactionSerializer, 'Refund',
        )

    @extend_schema(request=WalletAdjustInputSerializer, responses={201: WalletTransactionSerializer})
    @action(detail=True, methods=['post'], url_path='wallet/adjust', url_name='wallet-adjust')
    def adjust_wallet(self, request, pk=None):
        """Signed correction (owner/admin)."""
        return self._post_ledger_entry(
            request, pk, services.adjust_wallet,
            WalletAdjustInputSerializer, WalletTransactionSerializer, 'Wallet adjustment',
        )

    @extend_schema(
        parameters=[LIMIT_PARAMETER],
        responses={200: WalletTransactionSerializer(many=True)},
    )
    @action(detail=True, methods=['get'], url_path='wallet/transactions', url_name='wallet-transactions')
    def wallet_transactions(self, request, pk=None):
        """
        Wallet history, newest first.

        GET /api/members/{id}/wallet/transactions/?limit=N
        """
        member = self.get_object()
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        entries = services.list_wallet_transactions(
            member_id=member.pk,
            limit=query.validated_data.get('limit'),
        )
        return Response(WalletTransactionSerializer(entries, many=True).data)


class MemberLevelViewSet(viewsets.GenericViewSet):
    """
    Tier rules.

    list: any signed-in caller
    update: owner/admin; reclassifies all members
    """

    serializer_class = MemberLevelSerializer
    permission_classes = [IsAuthenticated]
    lookup_field = 'level'
    lookup_value_regex = '[a-z_]+'
    queryset = MemberLevel.objects.order_by('min_points')
    pagination_class = None

    def get_permissions(self):
        if self.action == 'update':
            return [IsAuthenticated(), IsPrivilegedIdentity()]
        return super().get_permissions()

    @extend_schema(responses={200: MemberLevelSerializer(many=True)})
    def list(self, request):
        """GET /api/member-levels/"""
        return Response(MemberLevelSerializer(services.list_levels(), many=True).data)

    @extend_schema(request=MemberLevelInputSerializer, responses={200: MemberLevelSerializer})
    def update(self, request, level=None):
        """
        Create or replace the rule for one tier.

        PUT /api/member-levels/{level}/
        Body: {"min_points": 1000, "points_earn_rate": "1.25", "discount_percent": "5.00"}
        """
        serializer = MemberLevelInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            rule = services.upsert_level(level=level, **serializer.validated_data)
        except InvalidLevelError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(MemberLevelSerializer(rule).data)
