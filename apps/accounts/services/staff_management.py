"""Staff account provisioning."""

import logging

from django.db import IntegrityError, transaction
from django.contrib.auth import get_user_model

from ..models import StaffRole
from .exceptions import UsernameTakenError

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def create_staff_user(
    *,
    username: str,
    password: str,
    role: str = StaffRole.REPAIR_STAFF,
    display_name: str = "",
) -> User:
    """
    Create a staff account.

    Owners also get Django admin access.

    Raises:
        UsernameTakenError: If the username already exists
        ValueError: If the role is unknown
    """
    if role not in StaffRole.values:
        raise ValueError(f"Unknown role: {role}")

    is_owner = role == StaffRole.OWNER
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username,
                password=password,
                role=role,
                display_name=display_name,
                is_staff=is_owner,
                is_superuser=is_owner,
            )
    except IntegrityError:
        raise UsernameTakenError(f"Username '{username}' is already taken")

    logger.info("Created %s account %s", role, username)
    return user
