from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsStaffIdentity
from apps.members.services import InsufficientFundsError, MemberNotFoundError
from .models import Cart, CartItem
from .permissions import IsCartOwnerOrStaff
from .serializers import (
    CartItemInputSerializer,
    CartItemQuantitySerializer,
    CartItemSerializer,
    CartQuoteSerializer,
    CartSerializer,
    CheckoutInputSerializer,
    CheckoutResultSerializer,
)
from . import services
from .services import (
    CartItemNotFoundError,
    CartNotActiveError,
    CartNotFoundError,
    CartsServiceError,
    EmptyCartError,
    InvalidItemTypeError,
    InvalidPriceError,
    InvalidQuantityError,
)

UUID_REGEX = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'


def cart_error_response(error):
    """Map a cart (or ledger, at checkout) domain error onto an HTTP response."""
    if isinstance(error, (CartNotFoundError, CartItemNotFoundError, MemberNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (CartNotActiveError, InsufficientFundsError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (EmptyCartError, InvalidItemTypeError, InvalidPriceError, InvalidQuantityError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        raise error
    return Response({'error': str(error)}, status=code)


def _cart_data(cart_id):
    return CartSerializer(services.get_cart(cart_id=cart_id)).data


@extend_schema(
    responses={200: CartSerializer},
    description="Get the member's active cart, creating it on first access.",
    tags=['carts'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def member_cart(request, member_id):
    """GET /api/members/{member_id}/cart/"""
    if not request.user.can_access_member(member_id):
        return Response(
            {'error': 'You can only access your own cart.'},
            status=status.HTTP_403_FORBIDDEN
        )

    try:
        cart = services.get_or_create_active_cart(member_id=member_id)
    except MemberNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(_cart_data(cart.pk))


class CartViewSet(viewsets.GenericViewSet):
    """
    Cart lifecycle.

    retrieve: Get a cart with lines and total
    items: Add a line (POST)
    clear: Remove all lines
    complete: Close the cart as completed
    abandon: Close the cart as abandoned (staff)
    quote: Price the cart with tier discount and tax
    checkout: Pay, award points and complete in one step
    """

    queryset = Cart.objects.select_related('member').prefetch_related('items')
    serializer_class = CartSerializer
    permission_classes = [IsAuthenticated, IsCartOwnerOrStaff]
    lookup_value_regex = UUID_REGEX

    def get_permissions(self):
        if self.action == 'abandon':
            return [IsAuthenticated(), IsStaffIdentity()]
        return super().get_permissions()

    def retrieve(self, request, pk=None):
        return Response(CartSerializer(self.get_object()).data)

    @extend_schema(request=CartItemInputSerializer, responses={201: CartItemSerializer})
    @action(detail=True, methods=['post'])
    def items(self, request, pk=None):
        """
        Add a line to the cart.

        POST /api/carts/{id}/items/
        Body: {"item_type": "service", "item_id": "svc1", "name": "Oil Change",
               "price": "49.99", "quantity": 2}
        """
        cart = self.get_object()
        serializer = CartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            item = services.add_item(cart_id=cart.pk, **serializer.validated_data)
        except CartsServiceError as e:
            return cart_error_response(e)

        return Response(CartItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['post'])
    def clear(self, request, pk=None):
        """POST /api/carts/{id}/clear/"""
        cart = self.get_object()
        try:
            services.clear_cart(cart_id=cart.pk)
        except CartsServiceError as e:
            return cart_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: CartSerializer})
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """POST /api/carts/{id}/complete/"""
        cart = self.get_object()
        try:
            services.complete_cart(cart_id=cart.pk)
        except CartsServiceError as e:
            return cart_error_response(e)
        return Response(_cart_data(cart.pk))

    @extend_schema(request=None, responses={200: CartSerializer})
    @action(detail=True, methods=['post'])
    def abandon(self, request, pk=None):
        """POST /api/carts/{id}/abandon/ (staff)"""
        cart = self.get_object()
        try:
            services.abandon_cart(cart_id=cart.pk)
        except CartsServiceError as e:
            return cart_error_response(e)
        return Response(_cart_data(cart.pk))

    @extend_schema(responses={200: CartQuoteSerializer})
    @action(detail=True, methods=['get'])
    def quote(self, request, pk=None):
        """
        Price the cart for its owner.

        GET /api/carts/{id}/quote/
        """
        cart = self.get_object()
        quote = services.quote_cart(cart_id=cart.pk)
        return Response(CartQuoteSerializer(quote).data)

    @extend_schema(request=CheckoutInputSerializer, responses={200: CheckoutResultSerializer})
    @action(detail=True, methods=['post'])
    def checkout(self, request, pk=None):
        """
        Check out the cart.

        POST /api/carts/{id}/checkout/
        Body: {"pay_with_wallet": true}
        """
        cart = self.get_object()
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = services.checkout_cart(
                cart_id=cart.pk,
                pay_with_wallet=serializer.validated_data['pay_with_wallet'],
            )
        except (CartsServiceError, InsufficientFundsError) as e:
            return cart_error_response(e)

        return Response(CheckoutResultSerializer(result).data)


class CartItemViewSet(viewsets.GenericViewSet):
    """
    Single cart lines.

    partial_update: Change quantity
    destroy: Remove the line (204 even if it is already gone)
    """

    queryset = CartItem.objects.select_related('cart')
    serializer_class = CartItemSerializer
    permission_classes = [IsAuthenticated, IsCartOwnerOrStaff]
    lookup_value_regex = UUID_REGEX

    @extend_schema(request=CartItemQuantitySerializer, responses={200: CartItemSerializer})
    def partial_update(self, request, pk=None):
        """PATCH /api/cart-items/{id}/"""
        item = self.get_object()
        serializer = CartItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            item = services.set_item_quantity(
                item_id=item.pk,
                quantity=serializer.validated_data['quantity'],
            )
        except CartsServiceError as e:
            return cart_error_response(e)

        return Response(CartItemSerializer(item).data)

    def destroy(self, request, pk=None):
        """DELETE /api/cart-items/{id}/"""
        item = self.get_queryset().filter(pk=pk).first()
        if item is not None:
            self.check_object_permissions(request, item)
            try:
                services.remove_item(item_id=item.pk)
            except CartsServiceError as e:
                return cart_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
