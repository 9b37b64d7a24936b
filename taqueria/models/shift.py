"""Shift model."""
from sqlalchemy import Column, BigInteger, Boolean, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taqueria.database import Base, BigIntPK


class Shift(Base):
    """
    Cashier working session, from the opening float to the final cash cut.
    
    At most one active shift per user (checked by shift_service).
    """
    
    __tablename__ = 'shift'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    opened_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    initial_cash = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    
    # Filled by the final cash cut
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    final_cash = Column(Numeric(10, 2), nullable=True)
    expected_cash = Column(Numeric(10, 2), nullable=True)
    cash_difference = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)
    
    # Relationships
    user = relationship('User', foreign_keys=[user_id])
    orders = relationship('Order', back_populates='shift')
    cash_cuts = relationship('CashCut', back_populates='shift', order_by='CashCut.id')
    
    def to_snapshot(self):
        """Value consumed by the cash reconciliation engine."""
        from taqueria.services.cash_reconciliation import ShiftSnapshot
        return ShiftSnapshot(
            id=self.id,
            user_id=self.user_id,
            initial_cash=self.initial_cash,
            opened_at=self.opened_at,
            closed_at=self.closed_at,
            final_cash=self.final_cash,
            is_active=bool(self.is_active)
        )
    
    def to_dict(self):
        from taqueria.utils.money import money_str
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user.name if self.user else None,
            'opened_at': self.opened_at.isoformat() if self.opened_at else None,
            'initial_cash': money_str(self.initial_cash),
            'is_active': self.is_active,
            'closed_at': self.closed_at.isoformat() if self.closed_at else None,
            'final_cash': money_str(self.final_cash) if self.final_cash is not None else None,
            'expected_cash': money_str(self.expected_cash) if self.expected_cash is not None else None,
            'cash_difference': money_str(self.cash_difference) if self.cash_difference is not None else None,
        }
    
    def __repr__(self):
        return f"<Shift(id={self.id}, user_id={self.user_id}, active={self.is_active})>"
