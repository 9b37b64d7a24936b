"""
Order service with transactional logic.

Turns a priced cart into a persisted order (order, lines and line
modifiers written together) and drives the kitchen / order board status
lifecycle.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taqueria.exceptions import InvalidStateError, NotFoundError, ValidationError
from taqueria.models import (
    DiningTable, Order, OrderItem, OrderItemModifier, Product, TableStatus,
    OrderStatus, OrderType, PaymentMethod, SETTLED_STATUSES
)
from taqueria.services import cart_pricing
from taqueria.services.cash_reconciliation import CompletedOrder
from taqueria.services.shift_service import get_active_shift_for_user

logger = logging.getLogger(__name__)

# Statuses shown on the kitchen screen
KITCHEN_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PREP, OrderStatus.READY)

ALLOWED_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.IN_PREP, OrderStatus.CANCELLED},
    OrderStatus.IN_PREP: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PAID, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Checkouts racing for the same daily number retry with a fresh count
ORDER_NUMBER_ATTEMPTS = 3


def generate_order_number(session: Session) -> str:
    """Daily sequence: ORD-YYYYMMDD-NNNN."""
    prefix = f"ORD-{datetime.now().strftime('%Y%m%d')}-"
    count = session.query(Order).filter(Order.order_number.like(f'{prefix}%')).count()
    return f"{prefix}{str(count + 1).zfill(4)}"


def _parse_payment_method(value) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod(str(value).lower())
    except ValueError:
        raise ValidationError(f'Método de pago inválido: {value!r}')


def _parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).lower())
    except ValueError:
        raise ValidationError(f'Estado inválido: {value!r}')


def _lock_table(session: Session, table_id: int) -> DiningTable:
    table = session.query(DiningTable).filter(
        DiningTable.id == table_id,
        DiningTable.is_active.is_(True)
    ).with_for_update().first()
    if not table:
        raise NotFoundError(f'Mesa {table_id} no encontrada')
    if table.status in (TableStatus.DIRTY, TableStatus.RESERVED):
        raise InvalidStateError(f'La mesa {table.number} no está disponible ({table.status.value})')
    return table


def create_order(
    session: Session,
    cart: cart_pricing.Cart,
    payment_method,
    user_id: int,
    tax_rate: Decimal,
    customer_name: str = None,
    notes: str = None,
    kitchen_notes: str = None
) -> Order:
    """
    Submit the cart as a new order attributed to the user's active shift.
    
    Either the order, every line and every line modifier are stored, or
    nothing is. The caller clears the cart only after this returns.
    
    Raises:
        ValidationError: empty cart, dine-in without table, bad payment method,
            inactive product.
        InvalidStateError: no open shift, table not usable, no free order
            number after ORDER_NUMBER_ATTEMPTS tries.
        NotFoundError: unknown table or product.
    """
    cart_pricing.validate_for_submission(cart)
    method = _parse_payment_method(payment_method)
    totals = cart_pricing.compute_totals(cart, tax_rate)

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        try:
            return _insert_order(session, cart, method, totals, user_id, customer_name, notes, kitchen_notes)
        except IntegrityError:
            logger.warning(f"[ORDER] Order number taken, retrying ({attempt}/{ORDER_NUMBER_ATTEMPTS})")

    raise InvalidStateError('No se pudo asignar un número de orden, intenta de nuevo')


def _insert_order(session, cart, method, totals, user_id, customer_name, notes, kitchen_notes) -> Order:
    try:
        shift = get_active_shift_for_user(session, user_id)
        if not shift:
            raise InvalidStateError('Debes abrir un turno antes de registrar órdenes')
        
        table = None
        if cart.order_type == OrderType.DINE_IN:
            table = _lock_table(session, cart.table_id)
        
        # Products must still be on the menu; line prices stay as quoted in the cart
        product_ids = {item.product.id for item in cart.items}
        products = session.query(Product).filter(Product.id.in_(product_ids)).all()
        products_dict = {p.id: p for p in products}
        if len(products_dict) != len(product_ids):
            raise NotFoundError('Uno o más productos no encontrados')
        for p in products:
            if not p.is_active:
                raise ValidationError(f'El producto "{p.name}" no está activo')
        
        order = Order(
            order_number=generate_order_number(session),
            shift_id=shift.id,
            user_id=user_id,
            table_id=table.id if table else None,
            type=cart.order_type,
            status=OrderStatus.PENDING,
            payment_method=method,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.grand_total,
            customer_name=customer_name,
            notes=notes,
            kitchen_notes=kitchen_notes,
            created_at=datetime.now()
        )
        
        for line in cart.items:
            item = OrderItem(
                product_id=line.product.id,
                product_name=line.product.name,
                quantity=line.quantity,
                unit_price=line.product.price,
                total_price=line.line_total
            )
            for modifier in line.modifiers:
                item.modifiers.append(OrderItemModifier(
                    modifier_id=modifier.id,
                    name=modifier.name,
                    price=modifier.price
                ))
            order.items.append(item)
        
        session.add(order)
        
        if table is not None:
            table.status = TableStatus.OCCUPIED
        
        session.commit()
        logger.info(
            f"[ORDER] Created {order.order_number} (shift={shift.id}, items={totals.item_count}, "
            f"total={totals.grand_total}, method={method.value})"
        )
        return order
    
    except (ValidationError, InvalidStateError, NotFoundError):
        session.rollback()
        raise
    except IntegrityError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception("[ORDER] Error creating order")
        raise Exception(f'Error al registrar la orden: {str(e)}')


def get_order(session: Session, order_id: int) -> Order:
    order = session.query(Order).filter_by(id=order_id).first()
    if not order:
        raise NotFoundError(f'Orden {order_id} no encontrada')
    return order


def update_order_status(session: Session, order_id: int, status) -> Order:
    """
    Move an order along its lifecycle.
    
    PENDING -> IN_PREP -> READY -> PAID / DELIVERED, PAID -> DELIVERED, and
    anything not yet settled may be cancelled. Orders of a closed shift can
    no longer become settled.
    """
    new_status = _parse_status(status)
    
    try:
        order = session.query(Order).filter_by(id=order_id).with_for_update().first()
        if not order:
            raise NotFoundError(f'Orden {order_id} no encontrada')
        
        if new_status not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidStateError(
                f'No se puede cambiar la orden {order.order_number} de '
                f'{order.status.value} a {new_status.value}'
            )
        
        # A closed shift already has its final cut; it cannot gain sales
        if (new_status in SETTLED_STATUSES and order.status not in SETTLED_STATUSES
                and not order.shift.is_active):
            raise InvalidStateError(
                f'El turno de la orden {order.order_number} ya está cerrado; no se puede cobrar'
            )
        
        previous = order.status
        order.status = new_status
        if new_status == OrderStatus.DELIVERED:
            order.completed_at = datetime.now()
        
        session.commit()
        logger.info(f"[ORDER] {order.order_number}: {previous.value} -> {new_status.value}")
        return order
    
    except (ValidationError, InvalidStateError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"[ORDER] Error updating status of order {order_id}")
        raise Exception(f'Error al actualizar la orden: {str(e)}')


def list_kitchen_orders(session: Session) -> List[Order]:
    """Orders the kitchen still has to work on, oldest first."""
    return session.query(Order).filter(
        Order.status.in_(KITCHEN_STATUSES)
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()


def list_orders(
    session: Session,
    status=None,
    shift_id: Optional[int] = None,
    limit: int = 100
) -> List[Order]:
    """Order board listing, newest first."""
    query = session.query(Order)
    if status:
        query = query.filter(Order.status == _parse_status(status))
    if shift_id:
        query = query.filter(Order.shift_id == shift_id)
    return query.order_by(Order.id.desc()).limit(limit).all()


def list_completed_orders(session: Session, shift_id: int) -> List[CompletedOrder]:
    """
    Every order attributed to ``shift_id`` as reconciliation values.
    
    Status filtering (settled vs. cancelled) is left to the reconciliation
    engine.
    """
    orders = session.query(Order).filter(Order.shift_id == shift_id).order_by(Order.id.asc()).all()
    return [order.to_completed_order() for order in orders]
