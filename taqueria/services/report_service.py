"""
Sales reports.

Only settled orders (paid or delivered) count as sales. Aggregation is done
in Python over Decimal amounts so totals match the cash cuts exactly.
"""
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session, selectinload

from taqueria.exceptions import ValidationError
from taqueria.models import Order, User, SETTLED_STATUSES, PaymentMethod
from taqueria.utils.money import ZERO, money_str, round2


def _day_bounds(date_from: date, date_to: date):
    if date_from > date_to:
        raise ValidationError('La fecha inicial no puede ser posterior a la final')
    start_dt = datetime.combine(date_from, time.min)
    end_dt = datetime.combine(date_to + timedelta(days=1), time.min)
    return start_dt, end_dt


def sales_report(session: Session, date_from: date, date_to: date, top_limit: int = 10) -> Dict[str, Any]:
    """
    Sales between two dates (both inclusive).

    Returns:
        dict with keys:
            - total_sales, order_count, average_ticket
            - by_payment_method: {method: Decimal}
            - by_user: list of {user_id, name, order_count, total}
            - daily: list of {date, order_count, total}
            - top_products: list of {product_id, name, quantity, total}
    """
    start_dt, end_dt = _day_bounds(date_from, date_to)

    orders = session.query(Order).options(
        selectinload(Order.items)
    ).filter(
        Order.status.in_(SETTLED_STATUSES),
        Order.created_at >= start_dt,
        Order.created_at < end_dt
    ).order_by(Order.created_at.asc(), Order.id.asc()).all()

    total_sales = ZERO
    by_method = {method.value: ZERO for method in PaymentMethod}
    by_user = defaultdict(lambda: {'order_count': 0, 'total': ZERO})
    daily = defaultdict(lambda: {'order_count': 0, 'total': ZERO})
    products = defaultdict(lambda: {'name': None, 'quantity': 0, 'total': ZERO})

    for order in orders:
        total = Decimal(order.total)
        total_sales += total
        if order.payment_method is not None:
            by_method[order.payment_method.value] += total

        by_user[order.user_id]['order_count'] += 1
        by_user[order.user_id]['total'] += total

        day = order.created_at.date().isoformat()
        daily[day]['order_count'] += 1
        daily[day]['total'] += total

        for item in order.items:
            entry = products[item.product_id]
            entry['name'] = item.product_name
            entry['quantity'] += item.quantity
            entry['total'] += Decimal(item.total_price)

    names = {}
    if by_user:
        names = dict(session.query(User.id, User.name).filter(User.id.in_(list(by_user.keys()))).all())

    order_count = len(orders)
    top_products = sorted(
        ({'product_id': pid, **data} for pid, data in products.items()),
        key=lambda p: (-p['quantity'], p['name'] or '')
    )[:top_limit]

    return {
        'date_from': date_from.isoformat(),
        'date_to': date_to.isoformat(),
        'total_sales': total_sales,
        'order_count': order_count,
        'average_ticket': round2(total_sales / order_count) if order_count else ZERO,
        'by_payment_method': by_method,
        'by_user': sorted(
            ({'user_id': uid, 'name': names.get(uid), **data} for uid, data in by_user.items()),
            key=lambda u: -u['total']
        ),
        'daily': [{'date': day, **data} for day, data in sorted(daily.items())],
        'top_products': top_products,
    }


def report_to_dict(report: Dict[str, Any]) -> Dict[str, Any]:
    """JSON version of ``sales_report`` (money as strings)."""
    def _rows(rows):
        return [{**row, 'total': money_str(row['total'])} for row in rows]

    return {
        'date_from': report['date_from'],
        'date_to': report['date_to'],
        'total_sales': money_str(report['total_sales']),
        'order_count': report['order_count'],
        'average_ticket': money_str(report['average_ticket']),
        'by_payment_method': {k: money_str(v) for k, v in report['by_payment_method'].items()},
        'by_user': _rows(report['by_user']),
        'daily': _rows(report['daily']),
        'top_products': _rows(report['top_products']),
    }
