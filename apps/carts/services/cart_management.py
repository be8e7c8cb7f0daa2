"""
Cart lifecycle and line items.

Only ``active`` carts accept changes. Every mutation re-reads the cart
status under a row lock, so a cart completed by one request cannot be
modified by another that started earlier. Locks are always taken cart
first, then line items.
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from apps.members.services import InvalidAmountError, lock_member, to_money

from ..models import Cart, CartItem, CartStatus, ItemType
from .exceptions import (
    CartItemNotFoundError,
    CartNotActiveError,
    CartNotFoundError,
    InvalidItemTypeError,
    InvalidPriceError,
    InvalidQuantityError,
)

logger = logging.getLogger(__name__)


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError("Quantity must be a positive integer")
    return quantity


def _validate_price(price) -> Decimal:
    try:
        price = to_money(price)
    except InvalidAmountError:
        raise InvalidPriceError(f"Invalid price: {price!r}")
    if price <= 0:
        raise InvalidPriceError("Price must be positive")
    return price


def get_cart(*, cart_id) -> Cart:
    """Cart with its items prefetched."""
    try:
        return (
            Cart.objects
            .select_related('member')
            .prefetch_related('items')
            .get(pk=cart_id)
        )
    except (Cart.DoesNotExist, ValidationError):
        raise CartNotFoundError(f"Cart {cart_id} not found")


def lock_cart(cart_id) -> Cart:
    """Fetch a cart with a row lock. Call inside a transaction."""
    try:
        return Cart.objects.select_for_update().get(pk=cart_id)
    except (Cart.DoesNotExist, ValidationError):
        raise CartNotFoundError(f"Cart {cart_id} not found")


def ensure_active(cart: Cart) -> Cart:
    if not cart.is_active:
        logger.warning("Rejected change to %s cart %s", cart.status, cart.pk)
        raise CartNotActiveError(f"Cart {cart.pk} is {cart.status}")
    return cart


def lock_active_cart(cart_id) -> Cart:
    return ensure_active(lock_cart(cart_id))


def _item_cart_id(item_id):
    """Unlocked read of the cart a line belongs to, or None."""
    try:
        return CartItem.objects.filter(pk=item_id).values_list('cart_id', flat=True).first()
    except ValidationError:
        return None


def _lock_item(cart: Cart, item_id):
    return CartItem.objects.select_for_update().filter(pk=item_id, cart=cart).first()


@transaction.atomic
def get_or_create_active_cart(*, member_id) -> Cart:
    """
    Return the member's active cart, creating it on first access.

    The member row lock serializes concurrent callers; the partial unique
    constraint on (member, status='active') backs this up at the database.

    Raises:
        MemberNotFoundError: If the member does not exist
    """
    member = lock_member(member_id)

    cart = Cart.objects.filter(member=member, status=CartStatus.ACTIVE).first()
    if cart is not None:
        return cart

    try:
        with transaction.atomic():
            cart = Cart.objects.create(member=member, status=CartStatus.ACTIVE)
    except IntegrityError:
        return Cart.objects.get(member=member, status=CartStatus.ACTIVE)

    logger.info("Opened cart %s for member %s", cart.pk, member.pk)
    return cart


@transaction.atomic
def add_item(
    *,
    cart_id,
    item_type: str,
    item_id: str,
    name: str,
    price,
    quantity: int = 1,
) -> CartItem:
    """
    Append a line to an active cart.

    Identical items are not merged; each call adds its own line.

    Args:
        cart_id: Cart primary key
        item_type: ``service``, ``part`` or ``product``
        item_id: Catalog reference, stored as given
        name: Display name snapshot
        price: Unit price snapshot (positive, 2 decimals)
        quantity: Positive integer

    Returns:
        Created CartItem

    Raises:
        CartNotFoundError, CartNotActiveError, InvalidItemTypeError,
        InvalidPriceError, InvalidQuantityError
    """
    if item_type not in ItemType.values:
        raise InvalidItemTypeError(f"Unknown item type: {item_type}")
    price = _validate_price(price)
    quantity = _validate_quantity(quantity)

    cart = lock_active_cart(cart_id)

    item = CartItem(
        cart=cart,
        item_type=item_type,
        item_id=str(item_id),
        name=name,
        price=price,
        quantity=quantity,
    )
    item.recalculate_subtotal()
    item.save()
    cart.save(update_fields=['updated_at'])
    return item


@transaction.atomic
def set_item_quantity(*, item_id, quantity: int) -> CartItem:
    """
    Change a line's quantity and recompute its subtotal from the stored price.

    Raises:
        CartItemNotFoundError, InvalidQuantityError, CartNotActiveError
    """
    quantity = _validate_quantity(quantity)

    cart_id = _item_cart_id(item_id)
    if cart_id is None:
        raise CartItemNotFoundError(f"Cart item {item_id} not found")

    cart = lock_active_cart(cart_id)
    item = _lock_item(cart, item_id)
    if item is None:
        raise CartItemNotFoundError(f"Cart item {item_id} not found")

    item.quantity = quantity
    item.recalculate_subtotal()
    item.save(update_fields=['quantity', 'subtotal'])
    cart.save(update_fields=['updated_at'])
    return item


@transaction.atomic
def remove_item(*, item_id) -> bool:
    """
    Delete a line. Removing a line that is already gone is a no-op.

    Returns:
        True if a line was deleted

    Raises:
        CartNotActiveError: If the line belongs to a closed cart
    """
    cart_id = _item_cart_id(item_id)
    if cart_id is None:
        return False

    cart = lock_active_cart(cart_id)
    item = _lock_item(cart, item_id)
    if item is None:
        return False
    item.delete()
    return True


@transaction.atomic
def clear_cart(*, cart_id) -> int:
    """Delete every line; the cart stays active. Returns lines removed."""
    cart = lock_active_cart(cart_id)
    deleted, _ = cart.items.all().delete()
    cart.save(update_fields=['updated_at'])
    return deleted


def _close(cart_id, new_status) -> Cart:
    cart = lock_active_cart(cart_id)
    cart.status = new_status
    cart.save(update_fields=['status', 'updated_at'])
    logger.info("Cart %s for member %s is now %s", cart.pk, cart.member_id, new_status)
    return cart


@transaction.atomic
def complete_cart(*, cart_id) -> Cart:
    """Move an active cart to ``completed``."""
    return _close(cart_id, CartStatus.COMPLETED)


@transaction.atomic
def abandon_cart(*, cart_id) -> Cart:
    """Move an active cart to ``abandoned``."""
    return _close(cart_id, CartStatus.ABANDONED)


def cart_total(*, cart_id) -> Decimal:
    """Sum of line subtotals; 0.00 for an empty cart."""
    return get_cart(cart_id=cart_id).total
