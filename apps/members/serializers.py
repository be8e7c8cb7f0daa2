from decimal import Decimal

from django.contrib.auth import password_validation
from rest_framework import serializers

from .models import Member, MemberLevel, PointsTransaction, WalletTransaction


# =============================================================================
# Input Serializers
# =============================================================================

class MemberCreateSerializer(serializers.Serializer):
    """
    Validate input for creating a member.

    ``password`` is optional for members created at the counter; such a
    member cannot log in until a password is set.
    """

    name = serializers.CharField(max_length=200)
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        style={'input_type': 'password'},
    )
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_password(self, value):
        if value:
            password_validation.validate_password(value)
        return value


class MemberUpdateSerializer(serializers.Serializer):
    """Profile fields staff may change. Balances are ledger-only."""

    name = serializers.CharField(max_length=200, required=False)
    email = serializers.EmailField(max_length=255, required=False)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class PointsInputSerializer(serializers.Serializer):
    """
    Validate input for add/spend points.

    Fields:
        amount (int): Positive number of points
        description (str): Optional ledger text
        reference_id (str): Optional external reference
    """

    amount = serializers.IntegerField(min_value=1)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    reference_id = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)


class PointsAdjustInputSerializer(serializers.Serializer):
    """Signed points correction."""

    amount = serializers.IntegerField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Adjustment must be non-zero')
        return value


class WalletInputSerializer(serializers.Serializer):
    """
    Validate input for wallet top-up, deduct and refund.

    Fields:
        amount (decimal): Positive amount with at most 2 decimal places
        description (str): Optional ledger text
        reference_id (str): Optional external reference (ignored for top-ups)
    """

    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    reference_id = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)


class WalletAdjustInputSerializer(serializers.Serializer):
    """Signed wallet correction."""

    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Adjustment must be non-zero')
        return value


class HistoryQuerySerializer(serializers.Serializer):
    """Query parameters for ledger history."""

    limit = serializers.IntegerField(min_value=1, required=False)


class MemberLevelInputSerializer(serializers.Serializer):
    """Validate input for replacing a tier rule."""

    min_points = serializers.IntegerField(min_value=0)
    points_earn_rate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0'))
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=Decimal('100'),
    )


# =============================================================================
# Output Serializers
# =============================================================================

class MemberSerializer(serializers.ModelSerializer):
    """Member profile with balances. Never exposes the password hash."""

    class Meta:
        model = Member
        fields = [
            'id',
            'name',
            'email',
            'phone',
            'address',
            'tier',
            'points',
            'lifetime_points',
            'wallet_balance',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PointsTransactionSerializer(serializers.ModelSerializer):

    class Meta:
        model = PointsTransaction
        fields = [
            'id',
            'member',
            'type',
            'amount',
            'balance',
            'description',
            'reference_id',
            'created_at',
        ]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):

    class Meta:
        model = WalletTransaction
        fields = [
            'id',
            'member',
            'type',
            'amount',
            'balance',
            'description',
            'reference_id',
            'created_at',
        ]
        read_only_fields = fields


class MemberLevelSerializer(serializers.ModelSerializer):

    class Meta:
        model = MemberLevel
        fields = ['level', 'min_points', 'points_earn_rate', 'discount_percent']
        read_only_fields = fields
