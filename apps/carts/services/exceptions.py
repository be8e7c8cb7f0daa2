"""Domain-specific exceptions for carts services."""


class CartsServiceError(Exception):
    """Base exception for carts services."""
    pass


class CartNotFoundError(CartsServiceError):
    """Raised when cart does not exist."""
    pass


class CartItemNotFoundError(CartsServiceError):
    """Raised when cart item does not exist."""
    pass


class CartNotActiveError(CartsServiceError):
    """Raised when a completed or abandoned cart is modified."""
    pass


class InvalidQuantityError(CartsServiceError):
    """Raised when quantity is not a positive integer."""
    pass


class InvalidPriceError(CartsServiceError):
    """Raised when a unit price is not positive."""
    pass


class InvalidItemTypeError(CartsServiceError):
    """Raised when item type is not service, part or product."""
    pass


class EmptyCartError(CartsServiceError):
    """Raised when checking out a cart without items."""
    pass
