from decimal import Decimal

from rest_framework import serializers

from apps.members.serializers import PointsTransactionSerializer, WalletTransactionSerializer
from .models import Cart, CartItem, ItemType


# =============================================================================
# Input Serializers
# =============================================================================

class CartItemInputSerializer(serializers.Serializer):
    """
    Validate input for adding a line to a cart.

    Fields:
        item_type (str): service, part or product
        item_id (str): Catalog reference
        name (str): Display name at time of adding
        price (decimal): Unit price snapshot
        quantity (int): Defaults to 1
    """

    item_type = serializers.ChoiceField(choices=ItemType.choices)
    item_id = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=200)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    quantity = serializers.IntegerField(min_value=1, default=1)


class CartItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class CheckoutInputSerializer(serializers.Serializer):
    pay_with_wallet = serializers.BooleanField(default=True)


# =============================================================================
# Output Serializers
# =============================================================================

class CartItemSerializer(serializers.ModelSerializer):

    class Meta:
        model = CartItem
        fields = [
            'id',
            'cart',
            'item_type',
            'item_id',
            'name',
            'price',
            'quantity',
            'subtotal',
            'created_at',
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    """Cart with its lines and running total (before discount and tax)."""

    items = CartItemSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Cart
        fields = [
            'id',
            'member',
            'status',
            'items',
            'total',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class CartQuoteSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    tier = serializers.CharField()
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    points_earned = serializers.IntegerField()


class CheckoutResultSerializer(serializers.Serializer):
    cart = CartSerializer()
    quote = CartQuoteSerializer()
    wallet_transaction = WalletTransactionSerializer(allow_null=True)
    points_transaction = PointsTransactionSerializer(allow_null=True)
