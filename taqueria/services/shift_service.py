"""
Shift service.

A shift opens with the cash float counted by the cashier and stays active
until a FINAL cash cut closes it (see cash_cut_service).
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from taqueria.exceptions import InvalidStateError, NotFoundError, ValidationError
from taqueria.models import Shift, User
from taqueria.utils.money import to_money

logger = logging.getLogger(__name__)


def get_active_shift_for_user(session: Session, user_id: int) -> Optional[Shift]:
    """Return the user's open shift, or None."""
    return session.query(Shift).filter(
        Shift.user_id == user_id,
        Shift.is_active.is_(True)
    ).order_by(Shift.id.desc()).first()


def open_shift(session: Session, user_id: int, initial_cash, notes: str = None) -> Shift:
    """
    Open a shift for ``user_id`` with the given opening float.
    
    Raises:
        ValidationError: negative or malformed amount.
        InvalidStateError: the user already has an active shift.
        NotFoundError: unknown or inactive user.
    """
    amount = to_money(initial_cash, 'efectivo inicial')
    if amount < 0:
        raise ValidationError('El efectivo inicial no puede ser negativo')
    
    try:
        user = session.query(User).filter_by(id=user_id, active=True).first()
        if not user:
            raise NotFoundError('Usuario no encontrado')
        
        if get_active_shift_for_user(session, user_id):
            raise InvalidStateError('Ya tienes un turno abierto')
        
        shift = Shift(user_id=user_id, initial_cash=amount, is_active=True, notes=notes)
        session.add(shift)
        session.commit()
        
        logger.info(f"[SHIFT] Opened shift {shift.id} for user {user_id} with {amount}")
        return shift
    
    except (ValidationError, InvalidStateError, NotFoundError):
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"[SHIFT] Error opening shift for user {user_id}")
        raise


def get_shift(session: Session, shift_id: int) -> Shift:
    shift = session.query(Shift).filter_by(id=shift_id).first()
    if not shift:
        raise NotFoundError(f'Turno {shift_id} no encontrado')
    return shift


def list_active_shifts(session: Session) -> List[Shift]:
    return session.query(Shift).filter(Shift.is_active.is_(True)).order_by(Shift.opened_at.asc()).all()


def list_shifts(session: Session, user_id: int = None, limit: int = 50) -> List[Shift]:
    """Most recent shifts first, optionally for one user."""
    query = session.query(Shift)
    if user_id:
        query = query.filter(Shift.user_id == user_id)
    return query.order_by(Shift.id.desc()).limit(limit).all()


def to_snapshot(shift: Shift):
    return shift.to_snapshot()
