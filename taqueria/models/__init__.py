"""Models package - exports all SQLAlchemy models."""
# Staff
from taqueria.models.user import User, UserPermission, UserRole, Permission

# Menu and dining room
from taqueria.models.product import Category, Product
from taqueria.models.modifier import Modifier
from taqueria.models.dining_table import DiningTable, TableStatus

# Orders and cash
from taqueria.models.order import Order
from taqueria.models.order_item import OrderItem, OrderItemModifier
from taqueria.models.shift import Shift
from taqueria.models.cash_cut import CashCut
from taqueria.models.inventory_movement import InventoryMovement, MovementType

# Domain enums shared with the pricing and reconciliation engines
from taqueria.services.cart_pricing import ModifierKind, OrderType
from taqueria.services.cash_reconciliation import OrderStatus, PaymentMethod, CutType, SETTLED_STATUSES

__all__ = [
    'User', 'UserPermission', 'UserRole', 'Permission',
    'Category', 'Product', 'Modifier', 'ModifierKind', 'DiningTable', 'TableStatus',
    'Order', 'OrderType', 'OrderStatus', 'PaymentMethod', 'SETTLED_STATUSES',
    'OrderItem', 'OrderItemModifier',
    'Shift', 'CashCut', 'CutType',
    'InventoryMovement', 'MovementType',
]
