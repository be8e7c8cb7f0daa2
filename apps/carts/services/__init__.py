"""Services for carts business logic."""

from .exceptions import (
    CartsServiceError,
    CartNotFoundError,
    CartItemNotFoundError,
    CartNotActiveError,
    InvalidQuantityError,
    InvalidPriceError,
    InvalidItemTypeError,
    EmptyCartError,
)
from .cart_management import (
    get_cart,
    get_or_create_active_cart,
    add_item,
    set_item_quantity,
    remove_item,
    clear_cart,
    complete_cart,
    abandon_cart,
    cart_total,
)
from .pricing import CartQuote, build_quote, quote_cart
from .checkout import CheckoutResult, checkout_cart

__all__ = [
    # Exceptions
    'CartsServiceError',
    'CartNotFoundError',
    'CartItemNotFoundError',
    'CartNotActiveError',
    'InvalidQuantityError',
    'InvalidPriceError',
    'InvalidItemTypeError',
    'EmptyCartError',
    # Cart lifecycle
    'get_cart',
    'get_or_create_active_cart',
    'add_item',
    'set_item_quantity',
    'remove_item',
    'clear_cart',
    'complete_cart',
    'abandon_cart',
    'cart_total',
    # Pricing & checkout
    'CartQuote',
    'build_quote',
    'quote_cart',
    'CheckoutResult',
    'checkout_cart',
]
