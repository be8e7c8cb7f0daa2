from decimal import Decimal

from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.db.models import Q
import uuid


class Tier(models.TextChoices):
    """Loyalty tiers, lowest first."""
    BRONZE = 'bronze', 'Bronze'
    SILVER = 'silver', 'Silver'
    GOLD = 'gold', 'Gold'
    PLATINUM = 'platinum', 'Platinum'

    @classmethod
    def rank(cls, value):
        return cls.values.index(value)


class Member(models.Model):
    """
    Loyalty member of the shop.

    ``points``, ``lifetime_points``, ``wallet_balance`` and ``tier`` are
    written only by the ledger and level services.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True, max_length=255)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    password = models.CharField(max_length=128, blank=True)

    tier = models.CharField(
        max_length=20,
        choices=Tier.choices,
        default=Tier.BRONZE,
    )
    points = models.IntegerField(default=0)
    lifetime_points = models.IntegerField(default=0)
    wallet_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tier'], name='members_tier_idx'),
            models.Index(fields=['created_at'], name='members_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(points__gte=0), name='member_points_non_negative'),
            models.CheckConstraint(condition=Q(lifetime_points__gte=0), name='member_lifetime_points_non_negative'),
            models.CheckConstraint(condition=Q(wallet_balance__gte=0), name='member_wallet_non_negative'),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        if not self.password:
            return False
        return check_password(raw_password, self.password)


class MemberLevel(models.Model):
    """Tier rule: threshold on lifetime points plus the tier's perks."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    level = models.CharField(max_length=20, choices=Tier.choices, unique=True)
    min_points = models.PositiveIntegerField(default=0)
    points_earn_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('1.00'),
        help_text="Points earned per currency unit spent",
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'member_levels'
        ordering = ['min_points']

    def __str__(self):
        return f"{self.level} (from {self.min_points} pts)"


class AppendOnlyModel(models.Model):
    """Ledger rows are written once and never changed or removed."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{type(self).__name__} rows are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(f"{type(self).__name__} rows cannot be deleted")


class PointsTransaction(AppendOnlyModel):
    """Immutable points ledger entry. ``amount`` is signed."""

    class Type(models.TextChoices):
        EARN = 'earn', 'Earn'
        SPEND = 'spend', 'Spend'
        EXPIRE = 'expire', 'Expire'
        ADJUST = 'adjust', 'Adjust'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='points_transactions',
    )
    type = models.CharField(max_length=10, choices=Type.choices)
    amount = models.IntegerField()
    balance = models.IntegerField(help_text="Points balance after this entry")
    description = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(max_length=64, blank=True, null=True)
    sequence = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Per-member posting order, 1 for the first entry",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'points_transactions'
        ordering = ['-created_at', '-sequence']
        indexes = [
            models.Index(fields=['member', '-created_at'], name='points_tx_member_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['member', 'sequence'],
                name='points_tx_member_seq_uniq',
            ),
        ]

    def __str__(self):
        return f"{self.type} {self.amount:+d} -> {self.balance}"


class WalletTransaction(AppendOnlyModel):
    """Immutable wallet ledger entry. ``amount`` is signed."""

    class Type(models.TextChoices):
        TOPUP = 'topup', 'Top-up'
        PAYMENT = 'payment', 'Payment'
        REFUND = 'refund', 'Refund'
        ADJUST = 'adjust', 'Adjust'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='wallet_transactions',
    )
    type = models.CharField(max_length=10, choices=Type.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Wallet balance after this entry",
    )
    description = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(max_length=64, blank=True, null=True)
    sequence = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Per-member posting order, 1 for the first entry",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'wallet_transactions'
        ordering = ['-created_at', '-sequence']
        indexes = [
            models.Index(fields=['member', '-created_at'], name='wallet_tx_member_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['member', 'sequence'],
                name='wallet_tx_member_seq_uniq',
            ),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} -> {self.balance}"
