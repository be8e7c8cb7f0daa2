from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import CartViewSet, CartItemViewSet, member_cart

app_name = 'carts'

router = SimpleRouter()
router.register(r'carts', CartViewSet, basename='cart')
router.register(r'cart-items', CartItemViewSet, basename='cart-item')

urlpatterns = [
    path('members/<uuid:member_id>/cart/', member_cart, name='member-cart'),
    path('', include(router.urls)),
]
