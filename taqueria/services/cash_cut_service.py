"""
Cash cut service.

Runs the reconciliation engine over a shift's orders and stores the result
as an append-only CashCut. A FINAL cut also closes the shift in the same
transaction, under a row lock on the shift.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from taqueria.exceptions import InvalidStateError, NotFoundError, ValidationError
from taqueria.models import CashCut, Shift
from taqueria.services.cash_reconciliation import (
    DEFAULT_NOTABLE_THRESHOLD, CutType, Reconciliation, reconcile, summarize_sales
)
from taqueria.services.order_service import list_completed_orders
from taqueria.utils.money import money_str

logger = logging.getLogger(__name__)


def _get_shift(session: Session, shift_id: int, lock: bool = False) -> Shift:
    query = session.query(Shift).filter(Shift.id == shift_id)
    if lock:
        query = query.with_for_update()
    shift = query.first()
    if not shift:
        raise NotFoundError(f'Turno {shift_id} no encontrado')
    return shift


def shift_summary(session: Session, shift_id: int) -> Dict[str, Any]:
    """Sales so far and the cash the drawer should hold, before counting."""
    shift = _get_shift(session, shift_id)
    snapshot = shift.to_snapshot()
    summary = summarize_sales(list_completed_orders(session, shift_id))
    data = summary.to_dict()
    data.update({
        'shift_id': shift.id,
        'is_active': shift.is_active,
        'initial_cash': money_str(snapshot.initial_cash),
        'expected_cash': money_str(snapshot.initial_cash + summary.total_cash),
    })
    return data


def preview_cash_cut(
    session: Session,
    shift_id: int,
    cash_counted,
    cut_type=CutType.PARTIAL,
    threshold: Decimal = DEFAULT_NOTABLE_THRESHOLD
) -> Reconciliation:
    """Reconcile without storing anything."""
    shift = _get_shift(session, shift_id)
    return reconcile(shift.to_snapshot(), list_completed_orders(session, shift_id), cash_counted, cut_type, threshold)


def perform_cash_cut(
    session: Session,
    shift_id: int,
    user_id: int,
    cash_counted,
    cut_type,
    threshold: Decimal = DEFAULT_NOTABLE_THRESHOLD,
    notes: str = None
) -> Tuple[CashCut, Reconciliation]:
    """
    Reconcile and persist a cash cut.
    
    For a FINAL cut the shift is closed with the counted cash, the expected
    cash and the difference. Either the cut and the shift update are both
    stored, or neither is.
    
    Raises:
        NotFoundError: unknown shift.
        InvalidStateError: shift already closed, or nothing to cut.
        ValidationError: missing or malformed counted cash.
    """
    try:
        shift = _get_shift(session, shift_id, lock=True)
        result = reconcile(
            shift.to_snapshot(),
            list_completed_orders(session, shift_id),
            cash_counted,
            cut_type,
            threshold
        )
        
        cut = CashCut.from_reconciliation(result, user_id=user_id, notes=notes)
        session.add(cut)
        
        if result.closes_shift:
            shift.is_active = False
            shift.closed_at = datetime.now()
            shift.closed_by = user_id
            shift.final_cash = result.cash_counted
            shift.expected_cash = result.expected_cash
            shift.cash_difference = result.difference
        
        session.commit()
        
        logger.info(
            f"[CASH] {result.cut_type.value} cut for shift {shift_id}: expected={result.expected_cash} "
            f"counted={result.cash_counted} difference={result.difference}"
        )
        if result.is_notable:
            logger.warning(
                f"[CASH] Notable difference on shift {shift_id}: {result.difference} ({result.outcome})"
            )
        return cut, result
    
    except (ValidationError, InvalidStateError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"[CASH] Error performing cash cut for shift {shift_id}")
        raise Exception(f'Error al realizar el corte de caja: {str(e)}')


def list_cash_cuts(session: Session, shift_id: Optional[int] = None, limit: int = 50) -> List[CashCut]:
    query = session.query(CashCut)
    if shift_id:
        query = query.filter(CashCut.shift_id == shift_id)
    return query.order_by(CashCut.id.desc()).limit(limit).all()
