from apps.accounts.permissions import IsMemberSelfOrStaff


class IsCartOwnerOrStaff(IsMemberSelfOrStaff):
    """
    The member owning the cart, or any staff identity.

    Accepts carts and cart items.
    """

    message = 'You can only access your own cart.'

    def has_object_permission(self, request, view, obj):
        cart = getattr(obj, 'cart', obj)
        return super().has_object_permission(request, view, cart)
