"""
Service layer tests for the points and wallet ledger.

Tests cover:
- Balance and lifetime bookkeeping
- Ledger rows mirror balances
- Rejected operations leave no trace
- Append-only transaction rows
- Wallet capacity and amount range
- Stable history order for equal timestamps
"""

import pytest
import uuid
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch
from django.db.models import Sum

from apps.members.models import Member, PointsTransaction, WalletTransaction
from apps.members.services import (
    add_points,
    spend_points,
    adjust_points,
    top_up_wallet,
    deduct_wallet,
    refund_wallet,
    adjust_wallet,
    list_points_transactions,
    list_wallet_transactions,
    to_money,
)
from apps.members.services.exceptions import (
    InsufficientFundsError,
    InsufficientPointsError,
    InvalidAmountError,
    MemberNotFoundError,
)
from apps.members.services.ledger import MAX_WALLET_BALANCE


def points_sum(member):
    return member.points_transactions.aggregate(total=Sum('amount'))['total'] or 0


def wallet_sum(member):
    return member.wallet_transactions.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')


# =============================================================================
# Points
# =============================================================================

@pytest.mark.django_db
class TestPoints:
    """Tests for add_points, spend_points and adjust_points."""

    def test_add_points_to_new_member(self, member, member_levels):
        """0 points + 500 -> 500 points, 500 lifetime, one earn row."""
        entry = add_points(member_id=member.id, amount=500, description='bonus')

        member.refresh_from_db()
        assert member.points == 500
        assert member.lifetime_points == 500
        assert member.tier == 'bronze'

        assert entry.type == PointsTransaction.Type.EARN
        assert entry.amount == 500
        assert entry.balance == 500
        assert entry.description == 'bonus'
        assert member.points_transactions.count() == 1

    def test_add_points_records_reference(self, member):
        entry = add_points(member_id=member.id, amount=10, description='visit', reference_id='INV-7')

        assert entry.reference_id == 'INV-7'

    def test_add_points_promotes_tier(self, member, member_levels):
        add_points(member_id=member.id, amount=1200, description='big job')

        member.refresh_from_db()
        assert member.tier == 'silver'

    @pytest.mark.parametrize('amount', [0, -5, 1.5, '10', True, None])
    def test_add_points_invalid_amount(self, member, amount):
        with pytest.raises(InvalidAmountError):
            add_points(member_id=member.id, amount=amount, description='x')

        assert member.points_transactions.count() == 0

    def test_add_points_unknown_member(self):
        with pytest.raises(MemberNotFoundError):
            add_points(member_id=uuid.uuid4(), amount=10, description='x')

    def test_add_points_malformed_member_id(self, db):
        with pytest.raises(MemberNotFoundError):
            add_points(member_id='not-a-uuid', amount=10, description='x')

    def test_spend_points(self, member, member_levels):
        add_points(member_id=member.id, amount=300, description='earn')

        entry = spend_points(member_id=member.id, amount=120, description='redeem')

        member.refresh_from_db()
        assert member.points == 180
        assert member.lifetime_points == 300
        assert entry.type == PointsTransaction.Type.SPEND
        assert entry.amount == -120
        assert entry.balance == 180

    def test_spend_points_insufficient(self, member):
        """100 points, spend 150 -> rejected, nothing written."""
        add_points(member_id=member.id, amount=100, description='earn')

        with pytest.raises(InsufficientPointsError):
            spend_points(member_id=member.id, amount=150, description='redeem')

        member.refresh_from_db()
        assert member.points == 100
        assert member.points_transactions.count() == 1

    def test_spend_points_does_not_demote(self, member, member_levels):
        add_points(member_id=member.id, amount=1500, description='earn')
        spend_points(member_id=member.id, amount=1500, description='redeem')

        member.refresh_from_db()
        assert member.points == 0
        assert member.tier == 'silver'

    def test_spend_exact_balance(self, member):
        add_points(member_id=member.id, amount=50, description='earn')
        spend_points(member_id=member.id, amount=50, description='redeem')

        member.refresh_from_db()
        assert member.points == 0

    def test_adjust_points_both_directions(self, member):
        add_points(member_id=member.id, amount=100, description='earn')

        up = adjust_points(member_id=member.id, amount=25, description='goodwill')
        down = adjust_points(member_id=member.id, amount=-75, description='correction')

        member.refresh_from_db()
        assert up.type == down.type == PointsTransaction.Type.ADJUST
        assert member.points == 50
        assert member.lifetime_points == 100

    def test_adjust_points_cannot_go_negative(self, member):
        with pytest.raises(InsufficientPointsError):
            adjust_points(member_id=member.id, amount=-1, description='x')

    def test_adjust_points_zero(self, member):
        with pytest.raises(InvalidAmountError):
            adjust_points(member_id=member.id, amount=0, description='x')

    def test_points_equal_ledger_sum(self, member, member_levels):
        add_points(member_id=member.id, amount=700, description='a')
        spend_points(member_id=member.id, amount=200, description='b')
        adjust_points(member_id=member.id, amount=-50, description='c')
        add_points(member_id=member.id, amount=5, description='d')
        with pytest.raises(InsufficientPointsError):
            spend_points(member_id=member.id, amount=10_000, description='e')

        member.refresh_from_db()
        assert member.points == points_sum(member) == 455


# =============================================================================
# Wallet
# =============================================================================

@pytest.mark.django_db
class TestWallet:
    """Tests for wallet top-up, deduct, refund and adjust."""

    def test_top_up(self, member):
        entry = top_up_wallet(member_id=member.id, amount=Decimal('50.00'))

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('50.00')
        assert entry.type == WalletTransaction.Type.TOPUP
        assert entry.amount == Decimal('50.00')
        assert entry.balance == Decimal('50.00')
        assert entry.description == 'Wallet top-up'

    def test_top_up_float_is_exact(self, member):
        """Repeated 0.1 top-ups add up to exactly 0.30."""
        for _ in range(3):
            top_up_wallet(member_id=member.id, amount=0.1)

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('0.30')

    def test_amount_rounds_half_up(self, member):
        entry = top_up_wallet(member_id=member.id, amount='10.005')

        assert entry.amount == Decimal('10.01')

    @pytest.mark.parametrize('amount', [0, '-1.00', '0.004', 'abc', None, 'NaN'])
    def test_top_up_invalid_amount(self, member, amount):
        with pytest.raises(InvalidAmountError):
            top_up_wallet(member_id=member.id, amount=amount)

        assert member.wallet_transactions.count() == 0

    def test_deduct(self, member):
        top_up_wallet(member_id=member.id, amount='100.00')

        entry = deduct_wallet(member_id=member.id, amount='30.25', description='Invoice 12', reference_id='INV-12')

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('69.75')
        assert entry.type == WalletTransaction.Type.PAYMENT
        assert entry.amount == Decimal('-30.25')
        assert entry.balance == Decimal('69.75')
        assert entry.reference_id == 'INV-12'

    def test_deduct_insufficient(self, member):
        top_up_wallet(member_id=member.id, amount='20.00')

        with pytest.raises(InsufficientFundsError):
            deduct_wallet(member_id=member.id, amount='20.01', description='x')

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('20.00')
        assert member.wallet_transactions.count() == 1

    def test_refund(self, member):
        entry = refund_wallet(member_id=member.id, amount='12.50', description='Refund', reference_id='INV-9')

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('12.50')
        assert entry.type == WalletTransaction.Type.REFUND
        assert entry.amount == Decimal('12.50')

    def test_refund_invalid_amount(self, member):
        with pytest.raises(InvalidAmountError):
            refund_wallet(member_id=member.id, amount='0', description='x')

    def test_adjust_wallet(self, member):
        top_up_wallet(member_id=member.id, amount='10.00')

        adjust_wallet(member_id=member.id, amount='-2.50', description='fee')

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('7.50')

    def test_adjust_wallet_cannot_go_negative(self, member):
        with pytest.raises(InsufficientFundsError):
            adjust_wallet(member_id=member.id, amount='-0.01', description='x')

    def test_wallet_equals_ledger_sum(self, member):
        top_up_wallet(member_id=member.id, amount='100.00')
        deduct_wallet(member_id=member.id, amount='33.33', description='a')
        refund_wallet(member_id=member.id, amount='3.33', description='b')
        adjust_wallet(member_id=member.id, amount='-0.01', description='c')
        with pytest.raises(InsufficientFundsError):
            deduct_wallet(member_id=member.id, amount='1000.00', description='d')

        member.refresh_from_db()
        assert member.wallet_balance == wallet_sum(member) == Decimal('69.99')

    def test_deduct_unknown_member(self, db):
        with pytest.raises(MemberNotFoundError):
            deduct_wallet(member_id=uuid.uuid4(), amount='1.00', description='x')

    def test_top_up_to_capacity(self, member):
        top_up_wallet(member_id=member.id, amount=MAX_WALLET_BALANCE)

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('9999999999.99')

    def test_top_up_past_capacity_is_rejected(self, member):
        top_up_wallet(member_id=member.id, amount='9999999999.99')

        with pytest.raises(InvalidAmountError):
            top_up_wallet(member_id=member.id, amount='0.01')

        member.refresh_from_db()
        assert member.wallet_balance == MAX_WALLET_BALANCE
        assert member.wallet_transactions.count() == 1

    def test_refund_past_capacity_is_rejected(self, member):
        top_up_wallet(member_id=member.id, amount='9999999999.00')

        with pytest.raises(InvalidAmountError):
            refund_wallet(member_id=member.id, amount='1.00', description='x')

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('9999999999.00')
        assert member.wallet_balance == wallet_sum(member)

    def test_adjust_past_capacity_is_rejected(self, member):
        top_up_wallet(member_id=member.id, amount='9999999999.99')

        with pytest.raises(InvalidAmountError):
            adjust_wallet(member_id=member.id, amount='0.01', description='x')

        adjust_wallet(member_id=member.id, amount='-0.99', description='fee')
        member.refresh_from_db()
        assert member.wallet_balance == Decimal('9999999999.00')

    @pytest.mark.parametrize('amount', ['1e30', '99999999999999999999999999999'])
    def test_top_up_out_of_range_amount(self, member, amount):
        with pytest.raises(InvalidAmountError):
            top_up_wallet(member_id=member.id, amount=amount)

        assert member.wallet_transactions.count() == 0


# =============================================================================
# History
# =============================================================================

@pytest.mark.django_db
class TestHistory:

    def test_points_history_newest_first(self, member):
        for amount in (1, 2, 3):
            add_points(member_id=member.id, amount=amount, description=f'earn {amount}')

        history = list_points_transactions(member_id=member.id)

        assert [entry.amount for entry in history] == [3, 2, 1]

    def test_wallet_history_limit(self, member):
        for _ in range(5):
            top_up_wallet(member_id=member.id, amount='1.00')

        history = list_wallet_transactions(member_id=member.id, limit=2)

        assert len(history) == 2
        assert history[0].balance == Decimal('5.00')

    def test_default_limit(self, member, settings):
        settings.LEDGER_HISTORY_DEFAULT_LIMIT = 3
        for _ in range(4):
            add_points(member_id=member.id, amount=1, description='x')

        assert len(list_points_transactions(member_id=member.id)) == 3

    def test_limit_is_capped(self, member, settings):
        settings.LEDGER_HISTORY_MAX_LIMIT = 2
        for _ in range(3):
            add_points(member_id=member.id, amount=1, description='x')

        assert len(list_points_transactions(member_id=member.id, limit=100)) == 2

    @pytest.mark.parametrize('limit', [0, -1])
    def test_invalid_limit(self, member, limit):
        with pytest.raises(InvalidAmountError):
            list_points_transactions(member_id=member.id, limit=limit)

    def test_history_order_is_stable_for_equal_timestamps(self, member):
        frozen = datetime(2026, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
        with patch('django.utils.timezone.now', return_value=frozen):
            for amount in (1, 2, 3):
                add_points(member_id=member.id, amount=amount, description=f'earn {amount}')
            for amount in ('1.00', '2.00', '3.00'):
                top_up_wallet(member_id=member.id, amount=amount)

        points = list_points_transactions(member_id=member.id)
        wallet = list_wallet_transactions(member_id=member.id)

        assert {entry.created_at for entry in points} == {frozen}
        assert [entry.amount for entry in points] == [3, 2, 1]
        assert [entry.sequence for entry in points] == [3, 2, 1]
        assert [entry.amount for entry in wallet] == [Decimal('3.00'), Decimal('2.00'), Decimal('1.00')]
        assert list_wallet_transactions(member_id=member.id, limit=1)[0].balance == Decimal('6.00')

    def test_sequence_is_per_member(self, member, other_member):
        add_points(member_id=member.id, amount=1, description='a')
        add_points(member_id=member.id, amount=1, description='b')
        entry = add_points(member_id=other_member.id, amount=1, description='c')

        assert entry.sequence == 1

    def test_history_unknown_member(self, db):
        with pytest.raises(MemberNotFoundError):
            list_wallet_transactions(member_id=uuid.uuid4())

    def test_history_is_per_member(self, member, other_member):
        add_points(member_id=member.id, amount=5, description='x')

        assert list_points_transactions(member_id=other_member.id) == []


# =============================================================================
# Append-only rows
# =============================================================================

@pytest.mark.django_db
class TestImmutability:

    def test_points_row_cannot_be_updated(self, member):
        entry = add_points(member_id=member.id, amount=5, description='x')
        entry.amount = 500

        with pytest.raises(ValueError):
            entry.save()

    def test_wallet_row_cannot_be_deleted(self, member):
        entry = top_up_wallet(member_id=member.id, amount='5.00')

        with pytest.raises(ValueError):
            entry.delete()
        assert WalletTransaction.objects.filter(pk=entry.pk).exists()

    def test_member_delete_cascades_to_ledger(self, member):
        add_points(member_id=member.id, amount=5, description='x')
        top_up_wallet(member_id=member.id, amount='5.00')

        Member.objects.filter(pk=member.pk).delete()

        assert PointsTransaction.objects.count() == 0
        assert WalletTransaction.objects.count() == 0


class TestToMoney:

    @pytest.mark.parametrize('value,expected', [
        ('1', Decimal('1.00')),
        (2, Decimal('2.00')),
        (0.1, Decimal('0.10')),
        ('2.675', Decimal('2.68')),
        (Decimal('1.234'), Decimal('1.23')),
    ])
    def test_to_money(self, value, expected):
        assert to_money(value) == expected

    @pytest.mark.parametrize('value', ['1e30', 'abc', None, True, float('nan')])
    def test_to_money_rejects(self, value):
        with pytest.raises(InvalidAmountError):
            to_money(value)
