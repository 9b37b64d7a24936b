"""Modifier model (tortilla type, spice level, extras)."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Enum
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK
from taqueria.services.cart_pricing import ModifierKind


class Modifier(Base):
    """Reference data looked up by id; never mutated by the cart."""
    
    __tablename__ = 'modifier'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    kind = Column(Enum(ModifierKind, name='modifier_kind'), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    def to_pricing(self):
        from taqueria.services.cart_pricing import Modifier as PricedModifier
        return PricedModifier(id=self.id, name=self.name, price=self.price, kind=self.kind)
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'name': self.name,
            'price': money_str(self.price),
            'kind': self.kind.value,
        }
    
    def __repr__(self):
        return f"<Modifier(id={self.id}, name='{self.name}', kind={self.kind.value})>"
