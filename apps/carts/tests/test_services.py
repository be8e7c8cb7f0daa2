"""
Service layer tests for carts.

Tests cover:
- Active cart creation and reuse
- Line items and totals
- Cart row locked before line rows
- Closed carts reject changes
- Quote arithmetic
- Checkout, including all-or-nothing failure
"""

import pytest
import uuid
from decimal import Decimal
from unittest.mock import patch

from apps.carts.models import Cart, CartItem, CartStatus
from apps.carts.services import (
    abandon_cart,
    add_item,
    build_quote,
    cart_total,
    checkout_cart,
    clear_cart,
    complete_cart,
    get_cart,
    get_or_create_active_cart,
    quote_cart,
    remove_item,
    set_item_quantity,
)
from apps.carts.services import cart_management
from apps.carts.services.exceptions import (
    CartItemNotFoundError,
    CartNotActiveError,
    CartNotFoundError,
    EmptyCartError,
    InvalidItemTypeError,
    InvalidPriceError,
    InvalidQuantityError,
)
from apps.members.models import MemberLevel, PointsTransaction, WalletTransaction
from apps.members.services import add_points, top_up_wallet
from apps.members.services.exceptions import InsufficientFundsError, MemberNotFoundError


@pytest.fixture
def cart(member):
    return get_or_create_active_cart(member_id=member.id)


def add_oil_change(cart, quantity=2):
    return add_item(
        cart_id=cart.id,
        item_type='service',
        item_id='svc1',
        name='Oil Change',
        price='49.99',
        quantity=quantity,
    )


# =============================================================================
# Cart lifecycle
# =============================================================================

@pytest.mark.django_db
class TestCartLifecycle:

    def test_first_access_creates_cart(self, member):
        cart = get_or_create_active_cart(member_id=member.id)

        assert cart.status == CartStatus.ACTIVE
        assert cart.member_id == member.id

    def test_second_access_returns_same_cart(self, member, cart):
        assert get_or_create_active_cart(member_id=member.id).pk == cart.pk
        assert Cart.objects.filter(member=member).count() == 1

    def test_completed_cart_is_replaced(self, member, cart):
        complete_cart(cart_id=cart.id)

        new_cart = get_or_create_active_cart(member_id=member.id)

        assert new_cart.pk != cart.pk
        assert Cart.objects.filter(member=member, status=CartStatus.ACTIVE).count() == 1

    def test_unknown_member(self, db):
        with pytest.raises(MemberNotFoundError):
            get_or_create_active_cart(member_id=uuid.uuid4())

    def test_complete_then_add_rejected(self, cart):
        """Items can't be added to a completed cart."""
        complete_cart(cart_id=cart.id)

        with pytest.raises(CartNotActiveError):
            add_oil_change(cart)

        assert CartItem.objects.count() == 0

    def test_abandon(self, cart):
        closed = abandon_cart(cart_id=cart.id)

        assert closed.status == CartStatus.ABANDONED
        with pytest.raises(CartNotActiveError):
            clear_cart(cart_id=cart.id)

    def test_close_twice_rejected(self, cart):
        complete_cart(cart_id=cart.id)

        with pytest.raises(CartNotActiveError):
            abandon_cart(cart_id=cart.id)

        cart.refresh_from_db()
        assert cart.status == CartStatus.COMPLETED

    def test_get_unknown_cart(self, db):
        with pytest.raises(CartNotFoundError):
            get_cart(cart_id=uuid.uuid4())

    def test_get_malformed_cart_id(self, db):
        with pytest.raises(CartNotFoundError):
            get_cart(cart_id='nope')

    def test_deleting_member_deletes_carts(self, member, cart):
        add_oil_change(cart)

        member.delete()

        assert Cart.objects.count() == 0
        assert CartItem.objects.count() == 0


# =============================================================================
# Line items
# =============================================================================

@pytest.mark.django_db
class TestCartItems:

    def test_add_item_subtotal(self, cart):
        """2 x 49.99 -> subtotal 99.98."""
        item = add_oil_change(cart)

        assert item.subtotal == Decimal('99.98')
        assert cart_total(cart_id=cart.id) == Decimal('99.98')

    def test_same_item_twice_makes_two_lines(self, cart):
        add_oil_change(cart, quantity=1)
        add_oil_change(cart, quantity=1)

        assert cart.items.count() == 2
        assert cart_total(cart_id=cart.id) == Decimal('99.98')

    def test_empty_cart_total(self, cart):
        assert cart_total(cart_id=cart.id) == Decimal('0.00')

    def test_item_id_stored_as_given(self, cart):
        item = add_item(cart_id=cart.id, item_type='part', item_id=42, name='Filter', price='7.50')

        assert item.item_id == '42'
        assert item.quantity == 1

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, '2', True])
    def test_add_invalid_quantity(self, cart, quantity):
        with pytest.raises(InvalidQuantityError):
            add_oil_change(cart, quantity=quantity)

    @pytest.mark.parametrize('price', ['0', '-1.00', 'free', None])
    def test_add_invalid_price(self, cart, price):
        with pytest.raises(InvalidPriceError):
            add_item(cart_id=cart.id, item_type='part', item_id='p1', name='Part', price=price)

    def test_add_invalid_item_type(self, cart):
        with pytest.raises(InvalidItemTypeError):
            add_item(cart_id=cart.id, item_type='voucher', item_id='v1', name='Voucher', price='5.00')

    def test_add_to_unknown_cart(self, db):
        with pytest.raises(CartNotFoundError):
            add_item(cart_id=uuid.uuid4(), item_type='part', item_id='p1', name='Part', price='5.00')

    def test_set_quantity_recomputes_subtotal(self, cart):
        item = add_oil_change(cart)

        updated = set_item_quantity(item_id=item.id, quantity=3)

        assert updated.subtotal == Decimal('149.97')
        assert cart_total(cart_id=cart.id) == Decimal('149.97')

    def test_set_quantity_unknown_item(self, db):
        with pytest.raises(CartItemNotFoundError):
            set_item_quantity(item_id=uuid.uuid4(), quantity=1)

    def test_set_quantity_on_closed_cart(self, cart):
        item = add_oil_change(cart)
        complete_cart(cart_id=cart.id)

        with pytest.raises(CartNotActiveError):
            set_item_quantity(item_id=item.id, quantity=5)

        item.refresh_from_db()
        assert item.quantity == 2

    def test_remove_item_is_idempotent(self, cart):
        item = add_oil_change(cart)

        assert remove_item(item_id=item.id) is True
        assert remove_item(item_id=item.id) is False
        assert cart_total(cart_id=cart.id) == Decimal('0.00')

    def test_remove_from_closed_cart(self, cart):
        item = add_oil_change(cart)
        complete_cart(cart_id=cart.id)

        with pytest.raises(CartNotActiveError):
            remove_item(item_id=item.id)

    def test_set_quantity_malformed_item_id(self, db):
        with pytest.raises(CartItemNotFoundError):
            set_item_quantity(item_id='not-a-uuid', quantity=1)

    def test_item_from_other_cart_is_not_touched(self, cart, other_member):
        other_cart = get_or_create_active_cart(member_id=other_member.id)
        item = add_oil_change(other_cart)

        with patch.object(cart_management, '_item_cart_id', return_value=cart.id):
            with pytest.raises(CartItemNotFoundError):
                set_item_quantity(item_id=item.id, quantity=7)

        item.refresh_from_db()
        assert item.quantity == 2

    @pytest.mark.parametrize('mutate', [
        lambda item_id: set_item_quantity(item_id=item_id, quantity=3),
        lambda item_id: remove_item(item_id=item_id),
    ], ids=['set_item_quantity', 'remove_item'])
    def test_cart_is_locked_before_item(self, cart, mutate):
        item = add_oil_change(cart)
        lock_order = []
        real_lock_cart = cart_management.lock_active_cart
        real_lock_item = cart_management._lock_item

        def lock_cart(cart_id):
            lock_order.append('cart')
            return real_lock_cart(cart_id)

        def lock_item(locked_cart, item_id):
            lock_order.append('item')
            return real_lock_item(locked_cart, item_id)

        with patch.object(cart_management, 'lock_active_cart', side_effect=lock_cart), \
                patch.object(cart_management, '_lock_item', side_effect=lock_item):
            mutate(item.id)

        assert lock_order == ['cart', 'item']

    def test_clear_cart(self, cart):
        add_oil_change(cart)
        add_item(cart_id=cart.id, item_type='part', item_id='p1', name='Filter', price='7.50')

        assert clear_cart(cart_id=cart.id) == 2

        cart.refresh_from_db()
        assert cart.status == CartStatus.ACTIVE
        assert cart.items.count() == 0


# =============================================================================
# Quote
# =============================================================================

class TestBuildQuote:

    def test_no_rule(self):
        quote = build_quote(Decimal('99.98'), tier='bronze', tax_rate=Decimal('0.10'))

        assert quote.discount == Decimal('0.00')
        assert quote.tax == Decimal('10.00')
        assert quote.total == Decimal('109.98')
        assert quote.points_earned == 99

    def test_discount_before_tax(self):
        rule = MemberLevel(level='gold', min_points=5000,
                           points_earn_rate=Decimal('1.50'), discount_percent=Decimal('10.00'))

        quote = build_quote(Decimal('200.00'), tier='gold', rule=rule, tax_rate=Decimal('0.10'))

        assert quote.discount == Decimal('20.00')
        assert quote.tax == Decimal('18.00')
        assert quote.total == Decimal('198.00')
        assert quote.points_earned == 270

    def test_points_round_down(self):
        rule = MemberLevel(level='silver', min_points=1000,
                           points_earn_rate=Decimal('1.25'), discount_percent=Decimal('0.00'))

        quote = build_quote(Decimal('10.99'), tier='silver', rule=rule, tax_rate=Decimal('0'))

        assert quote.points_earned == 13

    def test_zero_subtotal(self):
        quote = build_quote(Decimal('0.00'), tier='bronze', tax_rate=Decimal('0.10'))

        assert quote.total == Decimal('0.00')
        assert quote.points_earned == 0

    def test_default_tax_rate(self, settings):
        settings.CART_TAX_RATE = Decimal('0.20')

        quote = build_quote(Decimal('10.00'), tier='bronze')

        assert quote.tax_rate == Decimal('0.20')
        assert quote.total == Decimal('12.00')


@pytest.mark.django_db
class TestQuoteCart:

    def test_quote_uses_member_tier(self, member, member_levels, cart, settings):
        settings.CART_TAX_RATE = Decimal('0.10')
        add_points(member_id=member.id, amount=1000, description='x')
        add_item(cart_id=cart.id, item_type='service', item_id='s1', name='Brakes', price='100.00')

        quote = quote_cart(cart_id=cart.id)

        assert quote.tier == 'silver'
        assert quote.discount_percent == Decimal('5.00')
        assert quote.discount == Decimal('5.00')
        assert quote.tax == Decimal('9.50')
        assert quote.total == Decimal('104.50')
        assert quote.points_earned == 118

    def test_quote_changes_nothing(self, member, cart):
        add_oil_change(cart)

        quote_cart(cart_id=cart.id)

        cart.refresh_from_db()
        assert cart.status == CartStatus.ACTIVE
        assert PointsTransaction.objects.count() == 0


# =============================================================================
# Checkout
# =============================================================================

@pytest.mark.django_db
class TestCheckout:

    @pytest.fixture(autouse=True)
    def tax(self, settings, member_levels):
        settings.CART_TAX_RATE = Decimal('0.10')

    def test_checkout_with_wallet(self, member, cart):
        top_up_wallet(member_id=member.id, amount='200.00')
        add_oil_change(cart)

        result = checkout_cart(cart_id=cart.id)

        assert result.quote.total == Decimal('109.98')
        assert result.cart.status == CartStatus.COMPLETED
        assert result.wallet_transaction.amount == Decimal('-109.98')
        assert result.wallet_transaction.reference_id == str(cart.id)
        assert result.points_transaction.amount == 99
        assert result.points_transaction.reference_id == str(cart.id)

        member.refresh_from_db()
        assert member.wallet_balance == Decimal('90.02')
        assert member.points == 99
        assert member.lifetime_points == 99

    def test_checkout_without_wallet(self, member, cart):
        add_oil_change(cart)

        result = checkout_cart(cart_id=cart.id, pay_with_wallet=False)

        assert result.wallet_transaction is None
        assert result.points_transaction.amount == 99
        assert WalletTransaction.objects.count() == 0

    def test_insufficient_funds_changes_nothing(self, member, cart):
        top_up_wallet(member_id=member.id, amount='50.00')
        add_oil_change(cart)

        with pytest.raises(InsufficientFundsError):
            checkout_cart(cart_id=cart.id)

        member.refresh_from_db()
        cart.refresh_from_db()
        assert member.wallet_balance == Decimal('50.00')
        assert member.points == 0
        assert cart.status == CartStatus.ACTIVE
        assert PointsTransaction.objects.count() == 0

    def test_empty_cart(self, cart):
        with pytest.raises(EmptyCartError):
            checkout_cart(cart_id=cart.id, pay_with_wallet=False)

        cart.refresh_from_db()
        assert cart.status == CartStatus.ACTIVE

    def test_checkout_closed_cart(self, cart):
        add_oil_change(cart)
        checkout_cart(cart_id=cart.id, pay_with_wallet=False)

        with pytest.raises(CartNotActiveError):
            checkout_cart(cart_id=cart.id, pay_with_wallet=False)

        assert PointsTransaction.objects.count() == 1

    def test_checkout_unknown_cart(self, db):
        with pytest.raises(CartNotFoundError):
            checkout_cart(cart_id=uuid.uuid4())

    def test_checkout_can_promote_tier(self, member, cart):
        add_points(member_id=member.id, amount=950, description='x')
        add_item(cart_id=cart.id, item_type='part', item_id='p1', name='Tyres', price='100.00')

        checkout_cart(cart_id=cart.id, pay_with_wallet=False)

        member.refresh_from_db()
        assert member.lifetime_points == 1050
        assert member.tier == 'silver'
