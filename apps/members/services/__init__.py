"""Services for member accounts, the points/wallet ledger and tiers."""

from .exceptions import (
    MembersServiceError,
    MemberNotFoundError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidAmountError,
    InsufficientPointsError,
    InsufficientFundsError,
    InvalidLevelError,
)
from .member_management import (
    lock_member,
    get_member,
    create_member,
    update_member,
    delete_member,
    authenticate_member,
)
from .levels import (
    classify,
    sync_member_tier,
    sync_tier,
    list_levels,
    get_level_rule,
    upsert_level,
)
from .ledger import (
    to_money,
    add_points,
    spend_points,
    adjust_points,
    top_up_wallet,
    deduct_wallet,
    refund_wallet,
    adjust_wallet,
    list_points_transactions,
    list_wallet_transactions,
)

__all__ = [
    # Exceptions
    'MembersServiceError',
    'MemberNotFoundError',
    'DuplicateEmailError',
    'InvalidCredentialsError',
    'InvalidAmountError',
    'InsufficientPointsError',
    'InsufficientFundsError',
    'InvalidLevelError',
    # Members
    'lock_member',
    'get_member',
    'create_member',
    'update_member',
    'delete_member',
    'authenticate_member',
    # Levels
    'classify',
    'sync_member_tier',
    'sync_tier',
    'list_levels',
    'get_level_rule',
    'upsert_level',
    # Ledger
    'to_money',
    'add_points',
    'spend_points',
    'adjust_points',
    'top_up_wallet',
    'deduct_wallet',
    'refund_wallet',
    'adjust_wallet',
    'list_points_transactions',
    'list_wallet_transactions',
]
