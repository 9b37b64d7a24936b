"""
Inventory service.

Stock levels are adjusted by hand (purchases, waste, physical counts);
orders do not decrement stock.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.models import InventoryMovement, MovementType, Product
from taqueria.utils.money import round2, to_money

logger = logging.getLogger(__name__)


def _parse_movement_type(value) -> MovementType:
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(str(value).lower())
    except ValueError:
        raise ValidationError(f'Tipo de movimiento inválido: {value!r}')


def adjust_inventory(
    session: Session,
    product_id: int,
    quantity: int,
    movement_type,
    reason: str = None,
    user_id: int = None,
    unit_cost=None
) -> InventoryMovement:
    """
    Apply a stock movement and record it.
    
    ``in`` adds, ``out`` subtracts and ``adjustment`` sets the counted
    quantity. Stock never goes below zero.
    """
    movement_type = _parse_movement_type(movement_type)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f'Cantidad inválida: {quantity!r}')
    if quantity < 0 or (quantity == 0 and movement_type != MovementType.ADJUSTMENT):
        raise ValidationError('La cantidad debe ser mayor a 0')
    cost = to_money(unit_cost, 'costo unitario') if unit_cost is not None else None
    
    try:
        product = session.query(Product).filter_by(id=product_id).with_for_update().first()
        if not product:
            raise NotFoundError(f'Producto {product_id} no encontrado')
        
        previous = product.stock_quantity or 0
        if movement_type == MovementType.IN:
            new_stock = previous + quantity
        elif movement_type == MovementType.OUT:
            new_stock = max(0, previous - quantity)
        else:
            new_stock = quantity
        
        product.stock_quantity = new_stock
        movement = InventoryMovement(
            product_id=product.id,
            type=movement_type,
            quantity=quantity,
            previous_stock=previous,
            new_stock=new_stock,
            reason=reason,
            unit_cost=cost,
            total_cost=round2(cost * quantity) if cost is not None else None,
            created_by=user_id
        )
        session.add(movement)
        session.commit()
        
        logger.info(f"[INVENTORY] {product.name}: {movement_type.value} {quantity} ({previous} -> {new_stock})")
        return movement
    
    except (ValidationError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"[INVENTORY] Error adjusting product {product_id}")
        raise Exception(f'Error al ajustar inventario: {str(e)}')


def list_inventory(session: Session, include_inactive: bool = False) -> List[Product]:
    query = session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc()).all()


def list_low_stock(session: Session, threshold: Optional[int] = None) -> List[Product]:
    """
    Active products at or below their minimum stock.
    
    With ``threshold`` the product's own minimum is ignored and the given
    level is used instead.
    """
    query = session.query(Product).filter(Product.is_active.is_(True))
    if threshold is not None:
        query = query.filter(Product.stock_quantity <= threshold)
    else:
        query = query.filter(Product.stock_quantity <= Product.min_stock)
    return query.order_by(Product.stock_quantity.asc(), Product.name.asc()).all()


def list_movements(session: Session, product_id: Optional[int] = None, limit: int = 100) -> List[InventoryMovement]:
    query = session.query(InventoryMovement)
    if product_id:
        query = query.filter(InventoryMovement.product_id == product_id)
    return query.order_by(InventoryMovement.id.desc()).limit(limit).all()
