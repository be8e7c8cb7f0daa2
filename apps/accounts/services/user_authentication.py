"""Staff authentication service."""

import logging

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

logger = logging.getLogger(__name__)

User = get_user_model()


@transaction.atomic
def authenticate_staff(*, username: str, password: str) -> User:
    """
    Authenticate a staff account with username and password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        username: Staff username
        password: Staff password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(username=username)
        )
    except User.DoesNotExist:
        raise InvalidCredentialsError("Invalid username or password")

    if not user.check_password(password):
        logger.warning("Failed staff login for %s", username)
        raise InvalidCredentialsError("Invalid username or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    logger.info("Staff user %s (%s) logged in", user.username, user.role)
    return user
