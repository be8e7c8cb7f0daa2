"""Fixtures shared by every app's tests."""

import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework.test import APIClient

from apps.accounts.models import StaffRole, User
from apps.members.models import MemberLevel
from apps.members.services import create_member

PASSWORD = 'TestPass123!'

DEFAULT_LEVELS = [
    ('bronze', 0, Decimal('1.00'), Decimal('0.00')),
    ('silver', 1000, Decimal('1.25'), Decimal('5.00')),
    ('gold', 5000, Decimal('1.50'), Decimal('10.00')),
    ('platinum', 10000, Decimal('2.00'), Decimal('15.00')),
]


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def member_levels(db):
    """
    Default tier rules.

    The seed migration creates them, but transactional tests flush the
    table, so tests that depend on tiers ask for this fixture.
    """
    return [
        MemberLevel.objects.update_or_create(
            level=level,
            defaults={
                'min_points': min_points,
                'points_earn_rate': earn_rate,
                'discount_percent': discount,
            },
        )[0]
        for level, min_points, earn_rate, discount in DEFAULT_LEVELS
    ]


@pytest.fixture
def member(db):
    """Create and return a member with a password."""
    return create_member(
        name='Test Member',
        email='member@example.com',
        password=PASSWORD,
        phone='555-0100',
    )


@pytest.fixture
def other_member(db):
    """Create and return a second member."""
    return create_member(
        name='Other Member',
        email='other@example.com',
        password=PASSWORD,
    )


def _staff(username, role):
    return User.objects.create_user(
        username=username,
        password=PASSWORD,
        role=role,
        display_name=username.title(),
    )


@pytest.fixture
def owner(db):
    return _staff('owner', StaffRole.OWNER)


@pytest.fixture
def admin_staff(db):
    return _staff('admin', StaffRole.ADMIN)


@pytest.fixture
def repair_staff(db):
    return _staff('mechanic', StaffRole.REPAIR_STAFF)


def _login(url_name, payload):
    client = APIClient()
    response = client.post(reverse(url_name), payload, format='json')
    assert response.status_code == 200, response.data
    return client


@pytest.fixture
def member_client(member):
    """API client holding a member session for ``member``."""
    return _login('accounts:member-login', {'email': member.email, 'password': PASSWORD})


@pytest.fixture
def other_member_client(other_member):
    return _login('accounts:member-login', {'email': other_member.email, 'password': PASSWORD})


@pytest.fixture
def owner_client(owner):
    return _login('accounts:admin-login', {'username': owner.username, 'password': PASSWORD})


@pytest.fixture
def admin_staff_client(admin_staff):
    return _login('accounts:admin-login', {'username': admin_staff.username, 'password': PASSWORD})


@pytest.fixture
def staff_client(repair_staff):
    """API client holding a repair staff session."""
    return _login('accounts:admin-login', {'username': repair_staff.username, 'password': PASSWORD})
