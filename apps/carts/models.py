from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
import uuid

from apps.members.models import Member


class CartStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    ABANDONED = 'abandoned', 'Abandoned'
    COMPLETED = 'completed', 'Completed'


class ItemType(models.TextChoices):
    SERVICE = 'service', 'Service'
    PART = 'part', 'Part'
    PRODUCT = 'product', 'Product'


class Cart(models.Model):
    """
    Member's shopping cart.

    A member has at most one ``active`` cart; ``completed`` and
    ``abandoned`` are terminal.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='carts',
    )
    status = models.CharField(
        max_length=20,
        choices=CartStatus.choices,
        default=CartStatus.ACTIVE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'carts'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['member'],
                condition=Q(status='active'),
                name='unique_active_cart_per_member',
            ),
        ]

    def __str__(self):
        return f"Cart {self.id} ({self.status})"

    @property
    def is_active(self):
        return self.status == CartStatus.ACTIVE

    @property
    def total(self):
        """Sum of line subtotals; uses prefetched items when available."""
        return sum((item.subtotal for item in self.items.all()), Decimal('0.00'))


class CartItem(models.Model):
    """
    Line in a cart.

    ``price`` is a snapshot taken when the line was added; ``subtotal`` is
    always ``price * quantity``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name='items',
    )
    item_type = models.CharField(max_length=20, choices=ItemType.choices)
    item_id = models.CharField(max_length=64, help_text="Catalog reference, not validated")
    name = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    def recalculate_subtotal(self):
        self.subtotal = self.price * self.quantity
        return self.subtotal
