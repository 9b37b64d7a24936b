"""
Cash reconciliation engine.

Given a shift's opening float and the orders attributed to it, computes
sales per payment method, the cash expected in the drawer and the signed
difference against the counted cash. Pure computation: persisting the cut
and closing the shift is done by ``cash_cut_service``.

Shift lifecycle:
    OPEN   -- any number of PARTIAL cuts, orders keep accumulating
    CLOSED -- reached through a single FINAL cut; nothing else is accepted
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from taqueria.exceptions import InvalidStateError, ValidationError
from taqueria.utils.money import ZERO, money_str, to_money

DEFAULT_NOTABLE_THRESHOLD = Decimal('10.00')


class PaymentMethod(enum.Enum):
    """Payment method enum."""
    CASH = 'cash'
    CARD = 'card'
    TRANSFER = 'transfer'


class OrderStatus(enum.Enum):
    """Order status enum (kitchen and payment lifecycle)."""
    PENDING = 'pending'
    IN_PREP = 'in_prep'
    READY = 'ready'
    PAID = 'paid'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


# Only settled orders count towards a cash cut
SETTLED_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.DELIVERED})


class CutType(enum.Enum):
    """PARTIAL ("corte X") keeps the shift open, FINAL ("corte Z") closes it."""
    PARTIAL = 'partial'
    FINAL = 'final'


def _enum(enum_cls, value, label):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f'{label} inválido: {value!r}')


@dataclass(frozen=True)
class ShiftSnapshot:
    """Read-only view of a shift at reconciliation time."""
    id: int
    user_id: int
    initial_cash: Decimal
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    final_cash: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'initial_cash', to_money(self.initial_cash, 'efectivo inicial'))
        if self.initial_cash < 0:
            raise ValidationError('El efectivo inicial no puede ser negativo')

    @property
    def is_closed(self) -> bool:
        return not self.is_active


@dataclass(frozen=True)
class CompletedOrder:
    """Order as seen by the reconciliation (any status; filtering happens later)."""
    id: int
    shift_id: int
    payment_method: Optional[PaymentMethod]
    total: Optional[Decimal]
    status: OrderStatus

    def __post_init__(self):
        object.__setattr__(self, 'status', _enum(OrderStatus, self.status, 'Estado de orden'))
        if self.payment_method is not None:
            object.__setattr__(self, 'payment_method', _enum(PaymentMethod, self.payment_method, 'Método de pago'))

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES


@dataclass(frozen=True)
class SalesSummary:
    """Settled sales of a shift partitioned by payment method."""
    total_cash: Decimal = ZERO
    total_card: Decimal = ZERO
    total_transfer: Decimal = ZERO
    order_count: int = 0

    @property
    def total_sales(self) -> Decimal:
        return self.total_cash + self.total_card + self.total_transfer

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_sales': money_str(self.total_sales),
            'total_cash': money_str(self.total_cash),
            'total_card': money_str(self.total_card),
            'total_transfer': money_str(self.total_transfer),
            'order_count': self.order_count,
        }


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of comparing counted cash against expected cash."""
    shift_id: int
    cut_type: CutType
    summary: SalesSummary
    initial_cash: Decimal
    expected_cash: Decimal
    cash_counted: Decimal
    difference: Decimal
    is_notable: bool

    @property
    def outcome(self) -> str:
        if self.difference > 0:
            return 'overage'
        if self.difference < 0:
            return 'shortage'
        return 'exact'

    @property
    def closes_shift(self) -> bool:
        return self.cut_type == CutType.FINAL

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary.to_dict()
        data.update({
            'shift_id': self.shift_id,
            'type': self.cut_type.value,
            'initial_cash': money_str(self.initial_cash),
            'expected_cash': money_str(self.expected_cash),
            'cash_counted': money_str(self.cash_counted),
            'difference': money_str(self.difference),
            'is_notable': self.is_notable,
            'outcome': self.outcome,
            'closes_shift': self.closes_shift,
        })
        return data


def summarize_sales(orders: Iterable[CompletedOrder]) -> SalesSummary:
    """
    Sum settled orders per payment method.

    Pending, in-preparation, ready and cancelled orders are skipped whatever
    their payment method or total says.
    """
    buckets = {method: ZERO for method in PaymentMethod}
    count = 0

    for order in orders:
        if not order.is_settled:
            continue
        if order.payment_method is None:
            raise ValidationError(f'La orden {order.id} está cobrada pero no tiene método de pago')
        buckets[order.payment_method] += to_money(order.total, f'total de la orden {order.id}')
        count += 1

    return SalesSummary(
        total_cash=buckets[PaymentMethod.CASH],
        total_card=buckets[PaymentMethod.CARD],
        total_transfer=buckets[PaymentMethod.TRANSFER],
        order_count=count,
    )


def is_notable_difference(difference: Decimal, threshold: Decimal = DEFAULT_NOTABLE_THRESHOLD) -> bool:
    """Strictly above the threshold; exactly the threshold is not notable."""
    return abs(difference) > threshold


def ensure_open(shift: ShiftSnapshot) -> None:
    if shift.is_closed:
        raise InvalidStateError(f'El turno {shift.id} ya fue cerrado con un corte final')


def reconcile(
    shift: ShiftSnapshot,
    orders: Iterable[CompletedOrder],
    cash_counted: Optional[Decimal],
    cut_type: CutType,
    threshold: Decimal = DEFAULT_NOTABLE_THRESHOLD,
) -> Reconciliation:
    """
    Compare counted cash with ``initial_cash + cash sales``.

    ``difference = cash_counted - expected_cash``: positive is an overage,
    negative a shortage. A shift without eligible orders is not an error.

    Raises:
        InvalidStateError: shift already closed, or nothing to cut (no
            eligible orders and no counted cash).
        ValidationError: malformed orders, orders from another shift,
            missing or negative counted cash.
    """
    ensure_open(shift)
    cut_type = _enum(CutType, cut_type, 'Tipo de corte')

    orders = list(orders)
    for order in orders:
        if order.shift_id != shift.id:
            raise ValidationError(f'La orden {order.id} no pertenece al turno {shift.id}')

    summary = summarize_sales(orders)

    if cash_counted is None:
        if summary.order_count == 0:
            raise InvalidStateError('No hay ventas ni efectivo contado para realizar el corte')
        raise ValidationError('El efectivo contado es requerido')

    counted = to_money(cash_counted, 'efectivo contado')
    if counted < 0:
        raise ValidationError('El efectivo contado no puede ser negativo')

    expected_cash = shift.initial_cash + summary.total_cash
    difference = counted - expected_cash

    return Reconciliation(
        shift_id=shift.id,
        cut_type=cut_type,
        summary=summary,
        initial_cash=shift.initial_cash,
        expected_cash=expected_cash,
        cash_counted=counted,
        difference=difference,
        is_notable=is_notable_difference(difference, threshold),
    )
