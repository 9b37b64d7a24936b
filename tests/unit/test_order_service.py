"""
Unit tests for order submission and status transitions.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from taqueria.exceptions import InvalidStateError, NotFoundError, ValidationError
from taqueria.models import (
    CutType, DiningTable, Order, OrderItem, OrderItemModifier, OrderStatus, OrderType,
    PaymentMethod, TableStatus
)
from taqueria.services import cart_pricing, cash_cut_service, order_service

TAX = Decimal('0.16')


def _taco_cart(taco, modifiers, order_type=OrderType.TAKEOUT, table_id=None):
    """Taco with two extras (3.00 + 2.00), quantity 3."""
    chosen = (
        modifiers['maiz'].to_pricing(),
        modifiers['sin_picante'].to_pricing(),
        modifiers['queso'].to_pricing(),
        modifiers['cebolla'].to_pricing(),
    )
    cart = cart_pricing.add_item(cart_pricing.Cart(), taco.to_pricing(), chosen)
    cart = cart_pricing.set_quantity(cart, 1, 3)
    return cart_pricing.set_order_type(cart, order_type, table_id)


class TestCreateOrder:

    def test_creates_order_with_lines_and_modifiers(self, session, cashier, cashier_shift, taco, modifiers):
        cart = _taco_cart(taco, modifiers)
        order = order_service.create_order(session, cart, 'cash', cashier.id, TAX, customer_name='Ana')

        stored = session.query(Order).filter_by(id=order.id).one()
        assert stored.shift_id == cashier_shift.id
        assert stored.status == OrderStatus.PENDING
        assert stored.payment_method == PaymentMethod.CASH
        assert stored.subtotal == Decimal('60.00')
        assert stored.tax == Decimal('9.60')
        assert stored.total == Decimal('69.60')
        assert stored.customer_name == 'Ana'
        assert len(stored.items) == 1

        item = stored.items[0]
        assert item.quantity == 3
        assert item.unit_price == Decimal('15.00')
        assert item.total_price == Decimal('60.00')
        assert sorted(m.name for m in item.modifiers) == sorted([
            'Tortilla de maíz', 'Sin picante', 'Queso extra', 'Cebolla asada'
        ])

    def test_order_number_is_a_daily_sequence(self, session, cashier, cashier_shift, taco, modifiers):
        first = order_service.create_order(session, _taco_cart(taco, modifiers), 'cash', cashier.id, TAX)
        second = order_service.create_order(session, _taco_cart(taco, modifiers), 'card', cashier.id, TAX)

        prefix = f"ORD-{datetime.now().strftime('%Y%m%d')}-"
        assert first.order_number == f'{prefix}0001'
        assert second.order_number == f'{prefix}0002'

    def test_requires_open_shift(self, session, cashier, taco, modifiers):
        with pytest.raises(InvalidStateError):
            order_service.create_order(session, _taco_cart(taco, modifiers), 'cash', cashier.id, TAX)
        assert session.query(Order).count() == 0

    def test_empty_cart_is_rejected(self, session, cashier, cashier_shift):
        cart = cart_pricing.Cart(order_type=OrderType.TAKEOUT)
        with pytest.raises(ValidationError):
            order_service.create_order(session, cart, 'cash', cashier.id, TAX)

    def test_invalid_payment_method(self, session, cashier, cashier_shift, taco, modifiers):
        with pytest.raises(ValidationError):
            order_service.create_order(session, _taco_cart(taco, modifiers), 'bitcoin', cashier.id, TAX)

    def test_dine_in_marks_table_occupied(self, session, cashier, cashier_shift, taco, modifiers, table1):
        cart = _taco_cart(taco, modifiers, OrderType.DINE_IN, table1.id)
        order = order_service.create_order(session, cart, 'card', cashier.id, TAX)

        assert order.table_id == table1.id
        table = session.query(DiningTable).filter_by(id=table1.id).one()
        assert table.status == TableStatus.OCCUPIED

    def test_dirty_table_is_rejected(self, session, cashier, cashier_shift, taco, modifiers, table1):
        table = session.query(DiningTable).filter_by(id=table1.id).one()
        table.status = TableStatus.DIRTY
        session.commit()

        cart = _taco_cart(taco, modifiers, OrderType.DINE_IN, table1.id)
        with pytest.raises(InvalidStateError):
            order_service.create_order(session, cart, 'cash', cashier.id, TAX)

    def test_unknown_table(self, session, cashier, cashier_shift, taco, modifiers):
        cart = _taco_cart(taco, modifiers, OrderType.DINE_IN, 999)
        with pytest.raises(NotFoundError):
            order_service.create_order(session, cart, 'cash', cashier.id, TAX)

    def test_taken_order_number_is_retried(self, session, monkeypatch, cashier, cashier_shift, taco, modifiers):
        first = order_service.create_order(session, _taco_cart(taco, modifiers), 'cash', cashier.id, TAX)
        numbers = iter([first.order_number, 'ORD-TEST-0002'])
        monkeypatch.setattr(order_service, 'generate_order_number', lambda session: next(numbers))

        second = order_service.create_order(session, _taco_cart(taco, modifiers), 'card', cashier.id, TAX)

        assert second.order_number == 'ORD-TEST-0002'
        assert session.query(Order).count() == 2

    def test_order_number_attempts_are_bounded(self, session, monkeypatch, cashier, cashier_shift, taco, modifiers):
        first = order_service.create_order(session, _taco_cart(taco, modifiers), 'cash', cashier.id, TAX)
        taken = first.order_number
        monkeypatch.setattr(order_service, 'generate_order_number', lambda session: taken)

        with pytest.raises(InvalidStateError):
            order_service.create_order(session, _taco_cart(taco, modifiers), 'card', cashier.id, TAX)

        assert session.query(Order).count() == 1

    def test_inactive_product_leaves_nothing_behind(self, session, cashier, cashier_shift, taco, modifiers, horchata):
        cart = _taco_cart(taco, modifiers)
        cart = cart_pricing.add_item(cart, horchata.to_pricing())

        stored = session.query(type(horchata)).filter_by(id=horchata.id).one()
        stored.is_active = False
        session.commit()

        with pytest.raises(ValidationError):
            order_service.create_order(session, cart, 'cash', cashier.id, TAX)

        assert session.query(Order).count() == 0
        assert session.query(OrderItem).count() == 0
        assert session.query(OrderItemModifier).count() == 0


class TestStatusTransitions:

    def test_kitchen_flow_to_delivered(self, session, cashier_shift, make_order):
        order = make_order(cashier_shift, PaymentMethod.CASH, '20.00', status=OrderStatus.PENDING)

        for status in ('in_prep', 'ready', 'delivered'):
            updated = order_service.update_order_status(session, order.id, status)
            assert updated.status.value == status

        assert updated.completed_at is not None

    def test_paid_can_be_delivered(self, session, cashier_shift, make_order):
        order = make_order(cashier_shift, PaymentMethod.CASH, '20.00', status=OrderStatus.READY)
        order_service.update_order_status(session, order.id, OrderStatus.PAID)
        updated = order_service.update_order_status(session, order.id, OrderStatus.DELIVERED)
        assert updated.status == OrderStatus.DELIVERED

    @pytest.mark.parametrize('current, target', [
        (OrderStatus.PENDING, OrderStatus.READY),
        (OrderStatus.PENDING, OrderStatus.PAID),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.PENDING),
        (OrderStatus.PAID, OrderStatus.CANCELLED),
    ])
    def test_illegal_transitions(self, session, cashier_shift, make_order, current, target):
        order = make_order(cashier_shift, PaymentMethod.CASH, '20.00', status=current)
        with pytest.raises(InvalidStateError):
            order_service.update_order_status(session, order.id, target)

    def test_unsettled_order_can_be_cancelled(self, session, cashier_shift, make_order):
        order = make_order(cashier_shift, PaymentMethod.CASH, '20.00', status=OrderStatus.IN_PREP)
        updated = order_service.update_order_status(session, order.id, 'cancelled')
        assert updated.status == OrderStatus.CANCELLED

    @pytest.mark.parametrize('target', [OrderStatus.PAID, OrderStatus.DELIVERED])
    def test_closed_shift_cannot_gain_sales(self, session, cashier, cashier_shift, make_order, target):
        order_id = make_order(cashier_shift, PaymentMethod.CASH, '40.00', status=OrderStatus.READY).id
        cash_cut_service.perform_cash_cut(session, cashier_shift.id, cashier.id, '100.00', CutType.FINAL)

        with pytest.raises(InvalidStateError):
            order_service.update_order_status(session, order_id, target)

        assert session.query(Order).filter_by(id=order_id).one().status == OrderStatus.READY

    def test_closed_shift_orders_can_still_be_cancelled_or_delivered(self, session, cashier, cashier_shift, make_order):
        ready_id = make_order(cashier_shift, PaymentMethod.CASH, '40.00', status=OrderStatus.READY).id
        paid_id = make_order(cashier_shift, PaymentMethod.CARD, '30.00', status=OrderStatus.PAID).id
        cash_cut_service.perform_cash_cut(session, cashier_shift.id, cashier.id, '100.00', CutType.FINAL)

        assert order_service.update_order_status(session, ready_id, 'cancelled').status == OrderStatus.CANCELLED
        assert order_service.update_order_status(session, paid_id, 'delivered').status == OrderStatus.DELIVERED

    def test_unknown_order_and_status(self, session, cashier_shift, make_order):
        with pytest.raises(NotFoundError):
            order_service.update_order_status(session, 999, 'ready')
        order = make_order(cashier_shift, PaymentMethod.CASH, '20.00', status=OrderStatus.PENDING)
        with pytest.raises(ValidationError):
            order_service.update_order_status(session, order.id, 'burnt')


class TestListings:

    def test_kitchen_queue_only_has_open_orders(self, session, cashier_shift, make_order):
        pending = make_order(cashier_shift, PaymentMethod.CASH, '10.00', status=OrderStatus.PENDING)
        ready = make_order(cashier_shift, PaymentMethod.CASH, '10.00', status=OrderStatus.READY)
        make_order(cashier_shift, PaymentMethod.CASH, '10.00', status=OrderStatus.PAID)
        make_order(cashier_shift, PaymentMethod.CASH, '10.00', status=OrderStatus.CANCELLED)

        queue = order_service.list_kitchen_orders(session)
        assert [o.id for o in queue] == [pending.id, ready.id]

    def test_list_orders_filters_by_status(self, session, cashier_shift, make_order):
        make_order(cashier_shift, PaymentMethod.CASH, '10.00', status=OrderStatus.PENDING)
        paid = make_order(cashier_shift, PaymentMethod.CARD, '10.00', status=OrderStatus.PAID)

        assert [o.id for o in order_service.list_orders(session, status='paid')] == [paid.id]
        assert len(order_service.list_orders(session, shift_id=cashier_shift.id)) == 2

    def test_completed_orders_are_reconciliation_values(self, session, cashier_shift, make_order):
        make_order(cashier_shift, PaymentMethod.CASH, '50.00')
        make_order(cashier_shift, PaymentMethod.CARD, '30.00', status=OrderStatus.CANCELLED)

        values = order_service.list_completed_orders(session, cashier_shift.id)
        assert [v.total for v in values] == [Decimal('50.00'), Decimal('30.00')]
        assert values[0].is_settled is True
        assert values[1].is_settled is False
