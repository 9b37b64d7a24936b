"""
Unit tests for inventory adjustments.
"""

import pytest
from decimal import Decimal

from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.models import InventoryMovement, MovementType, Product
from taqueria.services import inventory_service


class TestAdjustInventory:

    def test_entry_adds_stock(self, session, taco, admin_user):
        movement = inventory_service.adjust_inventory(
            session, taco.id, 20, 'in', reason='Compra', user_id=admin_user.id, unit_cost='6.50'
        )
        assert movement.type == MovementType.IN
        assert movement.previous_stock == 50
        assert movement.new_stock == 70
        assert movement.total_cost == Decimal('130.00')
        assert session.query(Product).filter_by(id=taco.id).one().stock_quantity == 70

    def test_exit_is_floored_at_zero(self, session, horchata):
        movement = inventory_service.adjust_inventory(session, horchata.id, 8, MovementType.OUT, reason='Merma')
        assert movement.previous_stock == 5
        assert movement.new_stock == 0

    def test_adjustment_sets_counted_quantity(self, session, taco):
        movement = inventory_service.adjust_inventory(session, taco.id, 0, 'adjustment', reason='Conteo')
        assert movement.new_stock == 0
        movement = inventory_service.adjust_inventory(session, taco.id, 12, 'adjustment')
        assert movement.previous_stock == 0
        assert movement.new_stock == 12

    @pytest.mark.parametrize('quantity, movement_type', [
        (-1, 'in'), (0, 'in'), (0, 'out'), (2.5, 'in'), ('3', 'out'), (3, 'robo'),
    ])
    def test_invalid_movements(self, session, taco, quantity, movement_type):
        with pytest.raises(ValidationError):
            inventory_service.adjust_inventory(session, taco.id, quantity, movement_type)
        assert session.query(InventoryMovement).count() == 0

    def test_unknown_product(self, session):
        with pytest.raises(NotFoundError):
            inventory_service.adjust_inventory(session, 999, 1, 'in')

    def test_movements_are_listed_newest_first(self, session, taco):
        inventory_service.adjust_inventory(session, taco.id, 1, 'in')
        inventory_service.adjust_inventory(session, taco.id, 2, 'out')
        movements = inventory_service.list_movements(session, product_id=taco.id)
        assert [m.type for m in movements] == [MovementType.OUT, MovementType.IN]


class TestLowStock:

    def test_uses_product_minimum(self, session, taco, horchata):
        low = inventory_service.list_low_stock(session)
        assert [p.id for p in low] == [horchata.id]

    def test_explicit_threshold(self, session, taco, horchata):
        low = inventory_service.list_low_stock(session, threshold=60)
        assert [p.id for p in low] == [horchata.id, taco.id]

    def test_inactive_products_are_skipped(self, session, horchata):
        product = session.query(Product).filter_by(id=horchata.id).one()
        product.is_active = False
        session.commit()
        assert inventory_service.list_low_stock(session) == []
