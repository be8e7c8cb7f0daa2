"""
Cart pricing.

Order of operations: subtotal, minus the tier discount, plus tax on the
discounted amount. Points are earned on the discounted amount (before
tax) at the tier's earn rate, rounded down.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP

from django.conf import settings

from apps.members.services import get_level_rule

from .cart_management import get_cart

CENT = Decimal('0.01')
HUNDRED = Decimal('100')
DEFAULT_EARN_RATE = Decimal('1.00')


@dataclass(frozen=True)
class CartQuote:
    subtotal: Decimal
    tier: str
    discount_percent: Decimal
    discount: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal
    points_earned: int


def build_quote(subtotal: Decimal, *, tier: str, rule=None, tax_rate: Decimal = None) -> CartQuote:
    """
    Price a subtotal for a member of the given tier.

    Args:
        subtotal: Sum of line subtotals
        tier: Member tier, echoed back on the quote
        rule: The tier's ``MemberLevel``; without one there is no discount
            and points accrue at 1 per currency unit
        tax_rate: Defaults to ``settings.CART_TAX_RATE``
    """
    if tax_rate is None:
        tax_rate = settings.CART_TAX_RATE

    discount_percent = rule.discount_percent if rule is not None else Decimal('0.00')
    earn_rate = rule.points_earn_rate if rule is not None else DEFAULT_EARN_RATE

    discount = (subtotal * discount_percent / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    discounted = subtotal - discount
    tax = (discounted * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    points_earned = int((discounted * earn_rate).to_integral_value(rounding=ROUND_FLOOR))

    return CartQuote(
        subtotal=subtotal,
        tier=tier,
        discount_percent=discount_percent,
        discount=discount,
        tax_rate=tax_rate,
        tax=tax,
        total=discounted + tax,
        points_earned=points_earned,
    )


def quote_for(cart, member) -> CartQuote:
    return build_quote(
        cart.total,
        tier=member.tier,
        rule=get_level_rule(member.tier),
    )


def quote_cart(*, cart_id) -> CartQuote:
    """Price a cart for its owner without changing anything."""
    cart = get_cart(cart_id=cart_id)
    return quote_for(cart, cart.member)
