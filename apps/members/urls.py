from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MemberViewSet, MemberLevelViewSet

app_name = 'members'

router = DefaultRouter()
router.register(r'members', MemberViewSet, basename='member')
router.register(r'member-levels', MemberLevelViewSet, basename='member-level')

urlpatterns = [
    path('', include(router.urls)),
]
