"""
Points and wallet ledger.

Every mutation locks the member row, checks its precondition against the
locked values, writes the new balance and appends one immutable transaction
row, all in a single database transaction. A member's ``points`` therefore
always equals the sum of its ``PointsTransaction.amount`` values, and
``wallet_balance`` the sum of its ``WalletTransaction.amount`` values.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Max

from ..models import Member, PointsTransaction, WalletTransaction
from .exceptions import (
    InsufficientFundsError,
    InsufficientPointsError,
    InvalidAmountError,
)
from .levels import sync_member_tier
from .member_management import get_member, lock_member

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
# Largest value a DecimalField(max_digits=12, decimal_places=2) can hold
MAX_WALLET_BALANCE = Decimal('9999999999.99')


def to_money(value) -> Decimal:
    """Coerce to a 2-place Decimal. Floats go through ``str`` first."""
    if isinstance(value, bool):
        raise InvalidAmountError("Amount must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmountError(f"Amount out of range: {value!r}")


def _positive_points(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError("Points amount must be an integer")
    if amount <= 0:
        raise InvalidAmountError("Points amount must be positive")
    return amount


def _positive_money(amount) -> Decimal:
    amount = to_money(amount)
    if amount <= 0:
        raise InvalidAmountError("Amount must be positive")
    return amount


def _check_wallet_capacity(member: Member, amount: Decimal):
    if member.wallet_balance + amount > MAX_WALLET_BALANCE:
        raise InvalidAmountError(
            f"Wallet balance would exceed {MAX_WALLET_BALANCE}: balance {member.wallet_balance}, amount {amount}"
        )


def _next_sequence(model, member: Member) -> int:
    # Caller holds the member row lock
    last = model.objects.filter(member=member).aggregate(last=Max('sequence'))['last']
    return (last or 0) + 1


def _history_limit(limit) -> int:
    if limit is None:
        return settings.LEDGER_HISTORY_DEFAULT_LIMIT
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidAmountError("limit must be a positive integer")
    return min(limit, settings.LEDGER_HISTORY_MAX_LIMIT)


def _post_points(member: Member, *, type, amount: int, description: str, reference_id=None) -> PointsTransaction:
    member.save(update_fields=['points', 'lifetime_points', 'updated_at'])
    entry = PointsTransaction.objects.create(
        member=member,
        sequence=_next_sequence(PointsTransaction, member),
        type=type,
        amount=amount,
        balance=member.points,
        description=description,
        reference_id=reference_id,
    )
    logger.info(
        "Points %s %+d for member %s, balance %s",
        type, amount, member.pk, member.points,
    )
    return entry


def _post_wallet(member: Member, *, type, amount: Decimal, description: str, reference_id=None) -> WalletTransaction:
    member.save(update_fields=['wallet_balance', 'updated_at'])
    entry = WalletTransaction.objects.create(
        member=member,
        sequence=_next_sequence(WalletTransaction, member),
        type=type,
        amount=amount,
        balance=member.wallet_balance,
        description=description,
        reference_id=reference_id,
    )
    logger.info(
        "Wallet %s %s for member %s, balance %s",
        type, amount, member.pk, member.wallet_balance,
    )
    return entry


# =============================================================================
# POINTS
# =============================================================================

@transaction.atomic
def add_points(
    *,
    member_id,
    amount: int,
    description: str = "Points added",
    reference_id: str = None,
) -> PointsTransaction:
    """
    Credit earned points to a member.

    Increases both ``points`` and ``lifetime_points`` and re-runs tier
    classification.

    Args:
        member_id: Member primary key
        amount: Positive integer
        description: Free text stored on the ledger row
        reference_id: Optional external reference (e.g. cart id)

    Returns:
        The created PointsTransaction (type ``earn``)

    Raises:
        MemberNotFoundError: If the member does not exist
        InvalidAmountError: If amount is not a positive integer
    """
    amount = _positive_points(amount)
    member = lock_member(member_id)

    member.points += amount
    member.lifetime_points += amount
    entry = _post_points(
        member,
        type=PointsTransaction.Type.EARN,
        amount=amount,
        description=description,
        reference_id=reference_id,
    )
    sync_member_tier(member)
    return entry


@transaction.atomic
def spend_points(
    *,
    member_id,
    amount: int,
    description: str = "Points spent",
    reference_id: str = None,
) -> PointsTransaction:
    """
    Redeem points from a member's balance.

    Lifetime points and tier are left alone.

    Raises:
        MemberNotFoundError: If the member does not exist
        InvalidAmountError: If amount is not a positive integer
        InsufficientPointsError: If the balance is lower than amount
    """
    amount = _positive_points(amount)
    member = lock_member(member_id)

    if member.points < amount:
        logger.warning(
            "Rejected spend of %s points for member %s (balance %s)",
            amount, member.pk, member.points,
        )
        raise InsufficientPointsError(
            f"Insufficient points: balance {member.points}, requested {amount}"
        )

    member.points -= amount
    return _post_points(
        member,
        type=PointsTransaction.Type.SPEND,
        amount=-amount,
        description=description,
        reference_id=reference_id,
    )


@transaction.atomic
def adjust_points(*, member_id, amount: int, description: str = "Points adjustment") -> PointsTransaction:
    """
    Signed manual correction of a member's points balance.

    Adjustments do not count as earnings, so ``lifetime_points`` and the
    tier stay as they are.

    Raises:
        InvalidAmountError: If amount is zero or not an integer
        InsufficientPointsError: If the correction would go below zero
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
        raise InvalidAmountError("Adjustment must be a non-zero integer")
    member = lock_member(member_id)

    if member.points + amount < 0:
        raise InsufficientPointsError(
            f"Adjustment would make points negative: balance {member.points}, adjustment {amount}"
        )

    member.points += amount
    return _post_points(
        member,
        type=PointsTransaction.Type.ADJUST,
        amount=amount,
        description=description,
    )


# =============================================================================
# WALLET
# =============================================================================

@transaction.atomic
def top_up_wallet(*, member_id, amount, description: str = "Wallet top-up") -> WalletTransaction:
    """
    Add money to a member's wallet.

    Raises:
        MemberNotFoundError: If the member does not exist
        InvalidAmountError: If amount is not positive, or the balance would
            exceed MAX_WALLET_BALANCE
    """
    amount = _positive_money(amount)
    member = lock_member(member_id)

    _check_wallet_capacity(member, amount)
    member.wallet_balance += amount
    return _post_wallet(
        member,
        type=WalletTransaction.Type.TOPUP,
        amount=amount,
        description=description,
    )


@transaction.atomic
def deduct_wallet(
    *,
    member_id,
    amount,
    description: str = "Payment",
    reference_id: str = None,
) -> WalletTransaction:
    """
    Pay from a member's wallet.

    Raises:
        MemberNotFoundError: If the member does not exist
        InvalidAmountError: If amount is not positive
        InsufficientFundsError: If the balance does not cover amount
    """
    amount = _positive_money(amount)
    member = lock_member(member_id)

    if member.wallet_balance < amount:
        logger.warning(
            "Rejected wallet payment of %s for member %s (balance %s)",
            amount, member.pk, member.wallet_balance,
        )
        raise InsufficientFundsError(
            f"Insufficient funds: balance {member.wallet_balance}, requested {amount}"
        )

    member.wallet_balance -= amount
    return _post_wallet(
        member,
        type=WalletTransaction.Type.PAYMENT,
        amount=-amount,
        description=description,
        reference_id=reference_id,
    )


@transaction.atomic
def refund_wallet(
    *,
    member_id,
    amount,
    description: str = "Refund",
    reference_id: str = None,
) -> WalletTransaction:
    """Credit a refund to a member's wallet."""
    amount = _positive_money(amount)
    member = lock_member(member_id)

    _check_wallet_capacity(member, amount)
    member.wallet_balance += amount
    return _post_wallet(
        member,
        type=WalletTransaction.Type.REFUND,
        amount=amount,
        description=description,
        reference_id=reference_id,
    )


@transaction.atomic
def adjust_wallet(*, member_id, amount, description: str = "Wallet adjustment") -> WalletTransaction:
    """
    Signed manual correction of a wallet balance.

    Raises:
        InvalidAmountError: If amount is zero, not a number, or would push
            the balance past MAX_WALLET_BALANCE
        InsufficientFundsError: If the correction would go below zero
    """
    amount = to_money(amount)
    if amount == 0:
        raise InvalidAmountError("Adjustment must be non-zero")
    member = lock_member(member_id)

    if member.wallet_balance + amount < 0:
        raise InsufficientFundsError(
            f"Adjustment would make wallet negative: balance {member.wallet_balance}, adjustment {amount}"
        )
    _check_wallet_capacity(member, amount)

    member.wallet_balance += amount
    return _post_wallet(
        member,
        type=WalletTransaction.Type.ADJUST,
        amount=amount,
        description=description,
    )


# =============================================================================
# HISTORY
# =============================================================================

def list_points_transactions(*, member_id, limit: int = None):
    """Newest-first points history, at most ``limit`` rows."""
    limit = _history_limit(limit)
    get_member(member_id=member_id)
    return list(
        PointsTransaction.objects
        .filter(member_id=member_id)
        .order_by('-sequence')[:limit]
    )


def list_wallet_transactions(*, member_id, limit: int = None):
    """Newest-first wallet history, at most ``limit`` rows."""
    limit = _history_limit(limit)
    get_member(member_id=member_id)
    return list(
        WalletTransaction.objects
        .filter(member_id=member_id)
        .order_by('-sequence')[:limit]
    )
