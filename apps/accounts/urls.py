from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    # Members
    path('member/register/', views.member_register, name='member-register'),
    path('member/login/', views.member_login, name='member-login'),
    path('member/logout/', views.logout, name='member-logout'),
    path('member/me/', views.member_me, name='member-me'),

    # Staff
    path('admin/login/', views.admin_login, name='admin-login'),
    path('admin/logout/', views.logout, name='admin-logout'),
    path('admin/me/', views.admin_me, name='admin-me'),

    # Either
    path('logout/', views.logout, name='logout'),
    path('me/', views.get_current_identity, name='me'),
]
