"""Order model."""
from sqlalchemy import Column, BigInteger, String, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK
from taqueria.services.cart_pricing import OrderType
from taqueria.services.cash_reconciliation import OrderStatus, PaymentMethod


class Order(Base):
    """
    Order submitted from the POS.
    
    The payment method is fixed at submission time; only the status moves
    afterwards (kitchen and order board).
    """
    
    __tablename__ = 'pos_order'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_number = Column(String(30), nullable=False, unique=True, index=True)
    shift_id = Column(BigInteger, ForeignKey('shift.id'), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False)
    table_id = Column(BigInteger, ForeignKey('dining_table.id'), nullable=True)
    type = Column(Enum(OrderType, name='order_type'), nullable=False)
    status = Column(Enum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING, index=True)
    payment_method = Column(Enum(PaymentMethod, name='payment_method'), nullable=True)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    customer_name = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    kitchen_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    
    # Relationships
    shift = relationship('Shift', back_populates='orders')
    user = relationship('User')
    table = relationship('DiningTable')
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan', order_by='OrderItem.id')
    
    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)
    
    def to_completed_order(self):
        """Value consumed by the cash reconciliation engine."""
        from taqueria.services.cash_reconciliation import CompletedOrder
        return CompletedOrder(
            id=self.id,
            shift_id=self.shift_id,
            payment_method=self.payment_method,
            total=self.total,
            status=self.status
        )
    
    def to_dict(self, include_items=True):
        from taqueria.utils.money import money_str
        data = {
            'id': self.id,
            'order_number': self.order_number,
            'shift_id': self.shift_id,
            'user_id': self.user_id,
            'table_number': self.table.number if self.table else None,
            'type': self.type.value,
            'status': self.status.value,
            'payment_method': self.payment_method.value if self.payment_method else None,
            'subtotal': money_str(self.subtotal),
            'tax': money_str(self.tax),
            'total': money_str(self.total),
            'customer_name': self.customer_name,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
    
    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status={self.status.value})>"
