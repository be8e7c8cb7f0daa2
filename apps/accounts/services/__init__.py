"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    InvalidCredentialsError,
    InactiveAccountError,
    UsernameTakenError,
)
from .user_authentication import authenticate_staff
from .staff_management import create_staff_user

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'UsernameTakenError',
    # Services
    'authenticate_staff',
    'create_staff_user',
]
