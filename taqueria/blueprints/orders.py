"""Order board blueprint (front of house)."""
from flask import Blueprint, jsonify, request, current_app, g

from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.forms.pos_forms import OrderStatusForm, form_payload, validate_or_raise
from taqueria.services import order_service

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')


@orders_bp.route('/')
@require_permission('pos_access', 'sales_view')
def board():
    """Newest orders first, optionally by status or shift."""
    orders = order_service.list_orders(
        get_session(),
        status=request.args.get('status') or None,
        shift_id=request.args.get('shift_id', type=int),
        limit=min(request.args.get('limit', 100, type=int), 500)
    )
    return jsonify({'status': 'success', 'orders': [o.to_dict(include_items=False) for o in orders]})


@orders_bp.route('/<int:order_id>')
@require_permission('pos_access', 'sales_view')
def detail(order_id):
    order = order_service.get_order(get_session(), order_id)
    return jsonify({'status': 'success', 'order': order.to_dict()})


@orders_bp.route('/<int:order_id>/status', methods=['PATCH', 'POST'])
@require_permission('pos_access')
def update_status(order_id):
    form = validate_or_raise(OrderStatusForm(formdata=form_payload()))
    order = order_service.update_order_status(get_session(), order_id, form.status.data)
    current_app.logger.info(f"[ORDERS] User {g.user.id} set {order.order_number} to {order.status.value}")
    return jsonify({'status': 'success', 'order': order.to_dict()})
