"""Menu category and product models."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK


class Category(Base):
    """Menu category (tacos, bebidas, postres...)."""
    
    __tablename__ = 'category'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=True)
    icon = Column(String(20), nullable=True)
    order_position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    products = relationship('Product', back_populates='category')
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'icon': self.icon,
            'order_position': self.order_position,
        }
    
    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


class Product(Base):
    """Product model."""
    
    __tablename__ = 'product'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    category_id = Column(BigInteger, ForeignKey('category.id'), nullable=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(50), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    cost = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    stock_quantity = Column(Integer, nullable=False, default=0, server_default='0')
    min_stock = Column(Integer, nullable=False, default=0, server_default='0')
    is_customizable = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    category = relationship('Category', back_populates='products')
    movements = relationship('InventoryMovement', back_populates='product', order_by='InventoryMovement.id.desc()')
    
    @property
    def is_low_stock(self):
        """Stock at or below the configured minimum."""
        return (self.stock_quantity or 0) <= (self.min_stock or 0)
    
    def to_pricing(self):
        """Immutable product value consumed by the cart pricing engine."""
        from taqueria.services.cart_pricing import Product as PricedProduct
        return PricedProduct(
            id=self.id,
            name=self.name,
            price=self.price,
            is_customizable=bool(self.is_customizable)
        )
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'description': self.description,
            'category_id': self.category_id,
            'category': self.category.name if self.category else None,
            'price': money_str(self.price),
            'cost': money_str(self.cost or 0),
            'stock_quantity': self.stock_quantity,
            'min_stock': self.min_stock,
            'is_low_stock': self.is_low_stock,
            'is_customizable': self.is_customizable,
        }
    
    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"
