"""Order line and line modifier models."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from taqueria.database import Base, BigIntPK


class OrderItem(Base):
    """Order line (product, quantity and priced total)."""
    
    __tablename__ = 'order_item'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('pos_order.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    product_name = Column(String(200), nullable=False)  # snapshot for tickets and reports
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # product price without modifiers
    total_price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    
    # Relationships
    order = relationship('Order', back_populates='items')
    product = relationship('Product')
    modifiers = relationship('OrderItemModifier', back_populates='order_item', cascade='all, delete-orphan')
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'unit_price': money_str(self.unit_price),
            'total_price': money_str(self.total_price),
            'modifiers': [m.to_dict() for m in self.modifiers],
        }
    
    def __repr__(self):
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"


class OrderItemModifier(Base):
    """Modifier selected for an order line, with the price charged."""
    
    __tablename__ = 'order_item_modifier'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_item_id = Column(BigInteger, ForeignKey('order_item.id', ondelete='CASCADE'), nullable=False, index=True)
    modifier_id = Column(BigInteger, ForeignKey('modifier.id'), nullable=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    
    order_item = relationship('OrderItem', back_populates='modifiers')
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {'modifier_id': self.modifier_id, 'name': self.name, 'price': money_str(self.price)}
