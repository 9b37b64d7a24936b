"""Dining table model."""
import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum
from taqueria.database import Base, BigIntPK


class TableStatus(enum.Enum):
    """Table status enum."""
    AVAILABLE = 'available'
    OCCUPIED = 'occupied'
    DIRTY = 'dirty'
    RESERVED = 'reserved'


class DiningTable(Base):
    """Table in the dining room."""
    
    __tablename__ = 'dining_table'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    number = Column(Integer, nullable=False, unique=True)
    name = Column(String(50), nullable=True)
    capacity = Column(Integer, nullable=True)
    status = Column(Enum(TableStatus, name='table_status'), nullable=False, default=TableStatus.AVAILABLE)
    is_active = Column(Boolean, nullable=False, default=True)
    
    def to_dict(self):
        return {
            'id': self.id,
            'number': self.number,
            'name': self.name,
            'capacity': self.capacity,
            'status': self.status.value,
        }
    
    def __repr__(self):
        return f"<DiningTable(id={self.id}, number={self.number}, status={self.status.value})>"
