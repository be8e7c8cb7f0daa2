"""Domain-specific exceptions for members services."""


class MembersServiceError(Exception):
    """Base exception for members services."""
    pass


class MemberNotFoundError(MembersServiceError):
    """Raised when member does not exist."""
    pass


class DuplicateEmailError(MembersServiceError):
    """Raised when another member already uses the email."""
    pass


class InvalidCredentialsError(MembersServiceError):
    """Raised when member email/password do not match."""
    pass


class InvalidAmountError(MembersServiceError):
    """Raised when a ledger amount is not a positive value."""
    pass


class InsufficientPointsError(MembersServiceError):
    """Raised when a member does not have enough points."""
    pass


class InsufficientFundsError(MembersServiceError):
    """Raised when the wallet balance does not cover a payment."""
    pass


class InvalidLevelError(MembersServiceError):
    """Raised when a tier rule has invalid values."""
    pass
