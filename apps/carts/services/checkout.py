"""Cart checkout: pay from the wallet, award points, close the cart."""

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction

from apps.members.models import PointsTransaction, WalletTransaction
from apps.members.services import add_points, deduct_wallet, lock_member

from ..models import Cart, CartStatus
from .cart_management import get_cart, lock_active_cart
from .exceptions import EmptyCartError
from .pricing import CartQuote, quote_for

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    cart: Cart
    quote: CartQuote
    wallet_transaction: Optional[WalletTransaction]
    points_transaction: Optional[PointsTransaction]


@transaction.atomic
def checkout_cart(*, cart_id, pay_with_wallet: bool = True) -> CheckoutResult:
    """
    Check out an active cart in a single transaction.

    Steps, all or nothing:
        1. Lock the member, then the cart (same order as cart creation)
        2. Price the cart at the member's current tier
        3. Deduct the total from the wallet when ``pay_with_wallet``
        4. Award the quoted points
        5. Mark the cart ``completed``

    Both ledger rows carry the cart id as ``reference_id``.

    Raises:
        CartNotFoundError: If the cart does not exist
        CartNotActiveError: If the cart is already closed
        EmptyCartError: If the cart has no lines
        InsufficientFundsError: If the wallet cannot cover the total
    """
    member = lock_member(get_cart(cart_id=cart_id).member_id)
    cart = lock_active_cart(cart_id)

    if not cart.items.exists():
        raise EmptyCartError(f"Cart {cart.pk} is empty")

    quote = quote_for(cart, member)
    reference = str(cart.pk)

    wallet_entry = None
    if pay_with_wallet and quote.total > 0:
        wallet_entry = deduct_wallet(
            member_id=member.pk,
            amount=quote.total,
            description='Cart checkout',
            reference_id=reference,
        )

    points_entry = None
    if quote.points_earned > 0:
        points_entry = add_points(
            member_id=member.pk,
            amount=quote.points_earned,
            description='Cart checkout',
            reference_id=reference,
        )

    cart.status = CartStatus.COMPLETED
    cart.save(update_fields=['status', 'updated_at'])

    logger.info(
        "Checked out cart %s for member %s: total %s, %s points",
        cart.pk, member.pk, quote.total, quote.points_earned,
    )
    return CheckoutResult(
        cart=cart,
        quote=quote,
        wallet_transaction=wallet_entry,
        points_transaction=points_entry,
    )
