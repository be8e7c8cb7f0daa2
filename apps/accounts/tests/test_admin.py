"""
Tests for the staff user admin.

Tests cover:
- Changelist columns
- Active-status badge rendering
"""

import pytest
from django.contrib import admin

from apps.accounts.admin import UserAdmin
from apps.accounts.models import User


@pytest.fixture
def user_admin():
    return UserAdmin(User, admin.site)


@pytest.mark.django_db
class TestUserAdmin:

    def test_list_display_has_role_and_status(self, user_admin):
        assert 'role' in user_admin.list_display
        assert 'is_active_badge' in user_admin.list_display

    def test_active_badge(self, user_admin, repair_staff):
        badge = user_admin.is_active_badge(repair_staff)

        assert '>Active</span>' in badge

    def test_inactive_badge(self, user_admin, repair_staff):
        repair_staff.is_active = False

        badge = user_admin.is_active_badge(repair_staff)

        assert '>Inactive</span>' in badge
