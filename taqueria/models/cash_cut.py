"""Cash cut model."""
from sqlalchemy import Column, BigInteger, Boolean, Integer, Numeric, DateTime, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK
from taqueria.services.cash_reconciliation import CutType


class CashCut(Base):
    """
    Reconciliation snapshot of a shift.
    
    Append-only: rows are never updated or deleted.
    """
    
    __tablename__ = 'cash_cut'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    shift_id = Column(BigInteger, ForeignKey('shift.id'), nullable=False, index=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False)
    type = Column(Enum(CutType, name='cash_cut_type'), nullable=False)
    order_count = Column(Integer, nullable=False, default=0)
    total_sales = Column(Numeric(10, 2), nullable=False)
    total_cash = Column(Numeric(10, 2), nullable=False)
    total_card = Column(Numeric(10, 2), nullable=False)
    total_transfer = Column(Numeric(10, 2), nullable=False)
    initial_cash = Column(Numeric(10, 2), nullable=False)
    expected_cash = Column(Numeric(10, 2), nullable=False)
    cash_counted = Column(Numeric(10, 2), nullable=False)
    difference = Column(Numeric(10, 2), nullable=False)
    is_notable = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    shift = relationship('Shift', back_populates='cash_cuts')
    user = relationship('User')
    
    @classmethod
    def from_reconciliation(cls, result, user_id, notes=None):
        """Build the row for a reconciliation result."""
        return cls(
            shift_id=result.shift_id,
            user_id=user_id,
            type=result.cut_type,
            order_count=result.summary.order_count,
            total_sales=result.summary.total_sales,
            total_cash=result.summary.total_cash,
            total_card=result.summary.total_card,
            total_transfer=result.summary.total_transfer,
            initial_cash=result.initial_cash,
            expected_cash=result.expected_cash,
            cash_counted=result.cash_counted,
            difference=result.difference,
            is_notable=result.is_notable,
            notes=notes
        )
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'shift_id': self.shift_id,
            'user_id': self.user_id,
            'type': self.type.value,
            'order_count': self.order_count,
            'total_sales': money_str(self.total_sales),
            'total_cash': money_str(self.total_cash),
            'total_card': money_str(self.total_card),
            'total_transfer': money_str(self.total_transfer),
            'initial_cash': money_str(self.initial_cash),
            'expected_cash': money_str(self.expected_cash),
            'cash_counted': money_str(self.cash_counted),
            'difference': money_str(self.difference),
            'is_notable': self.is_notable,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
    
    def __repr__(self):
        return f"<CashCut(id={self.id}, shift_id={self.shift_id}, type={self.type.value}, difference={self.difference})>"
