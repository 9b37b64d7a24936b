"""Inventory movement model."""
import enum
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK


class MovementType(enum.Enum):
    """IN adds, OUT subtracts, ADJUSTMENT sets the counted quantity."""
    IN = 'in'
    OUT = 'out'
    ADJUSTMENT = 'adjustment'


class InventoryMovement(Base):
    """Stock change of a product, one row per adjustment."""
    
    __tablename__ = 'inventory_movement'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False, index=True)
    type = Column(Enum(MovementType, name='inventory_movement_type'), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=True)
    unit_cost = Column(Numeric(10, 2), nullable=True)
    total_cost = Column(Numeric(10, 2), nullable=True)
    created_by = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    product = relationship('Product', back_populates='movements')
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'product_id': self.product_id,
            'type': self.type.value,
            'quantity': self.quantity,
            'previous_stock': self.previous_stock,
            'new_stock': self.new_stock,
            'reason': self.reason,
            'total_cost': money_str(self.total_cost) if self.total_cost is not None else None,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
    
    def __repr__(self):
        return f"<InventoryMovement(id={self.id}, product_id={self.product_id}, type={self.type.value})>"
