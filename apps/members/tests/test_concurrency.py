"""
Concurrency tests for the ledger.

Each thread gets its own database connection, so these run as
TransactionTestCase against the file-backed test database.
"""

import threading
from decimal import Decimal

from django.db import connection
from django.db.models import Sum
from django.test import TransactionTestCase

from apps.members.models import Member, MemberLevel
from apps.members.services import (
    add_points,
    create_member,
    deduct_wallet,
    spend_points,
    top_up_wallet,
)
from apps.members.services.exceptions import InsufficientFundsError, InsufficientPointsError


def run_in_threads(target, count):
    threads = [threading.Thread(target=target) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


class TestLedgerConcurrency(TransactionTestCase):
    """Concurrent postings against one member serialize on the member row."""

    def setUp(self):
        MemberLevel.objects.update_or_create(
            level='silver',
            defaults={
                'min_points': 1000,
                'points_earn_rate': Decimal('1.25'),
                'discount_percent': Decimal('5.00'),
            },
        )
        self.member = create_member(name='Busy Member', email='busy@example.com')

    def test_concurrent_spends_never_overdraw(self):
        """10 threads spending 30 of 100 points: exactly 3 succeed."""
        add_points(member_id=self.member.id, amount=100, description='seed')
        results = []
        errors = []

        def spend_in_thread():
            try:
                results.append(spend_points(member_id=self.member.id, amount=30, description='race'))
            except InsufficientPointsError:
                errors.append(True)
            finally:
                connection.close()

        run_in_threads(spend_in_thread, 10)

        assert len(results) == 3
        assert len(errors) == 7

        self.member.refresh_from_db()
        assert self.member.points == 10
        ledger_total = self.member.points_transactions.aggregate(total=Sum('amount'))['total']
        assert ledger_total == self.member.points

    def test_concurrent_wallet_payments_never_overdraw(self):
        top_up_wallet(member_id=self.member.id, amount='50.00')
        results = []
        errors = []

        def pay_in_thread():
            try:
                results.append(deduct_wallet(member_id=self.member.id, amount='20.00', description='race'))
            except InsufficientFundsError:
                errors.append(True)
            finally:
                connection.close()

        run_in_threads(pay_in_thread, 5)

        assert len(results) == 2
        assert len(errors) == 3

        self.member.refresh_from_db()
        assert self.member.wallet_balance == Decimal('10.00')
        balances = sorted(entry.balance for entry in results)
        assert balances == [Decimal('10.00'), Decimal('30.00')]

    def test_concurrent_earnings_are_not_lost(self):
        """Every credit lands and the tier reflects the final lifetime total."""
        def earn_in_thread():
            try:
                add_points(member_id=self.member.id, amount=200, description='race')
            finally:
                connection.close()

        run_in_threads(earn_in_thread, 6)

        member = Member.objects.get(pk=self.member.pk)
        assert member.points == 1200
        assert member.lifetime_points == 1200
        assert member.tier == 'silver'
        assert member.points_transactions.count() == 6
