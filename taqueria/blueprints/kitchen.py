"""Kitchen display blueprint."""
from flask import Blueprint, jsonify, current_app, g

from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.exceptions import UnauthorizedError
from taqueria.forms.pos_forms import OrderStatusForm, form_payload, validate_or_raise
from taqueria.models import OrderStatus
from taqueria.services import order_service

kitchen_bp = Blueprint('kitchen', __name__, url_prefix='/kitchen')

# The kitchen only moves orders through preparation
KITCHEN_TARGETS = {OrderStatus.IN_PREP.value, OrderStatus.READY.value}


@kitchen_bp.route('/orders')
@require_permission('kitchen_access')
def queue():
    """Pending, in preparation and ready orders, oldest first."""
    orders = order_service.list_kitchen_orders(get_session())
    return jsonify({'status': 'success', 'orders': [o.to_dict() for o in orders]})


@kitchen_bp.route('/orders/<int:order_id>/status', methods=['PATCH', 'POST'])
@require_permission('kitchen_access')
def update_status(order_id):
    form = validate_or_raise(OrderStatusForm(formdata=form_payload()))
    if form.status.data not in KITCHEN_TARGETS:
        raise UnauthorizedError('La cocina solo puede marcar órdenes en preparación o listas')
    
    order = order_service.update_order_status(get_session(), order_id, form.status.data)
    current_app.logger.info(f"[KITCHEN] User {g.user.id} set {order.order_number} to {order.status.value}")
    return jsonify({'status': 'success', 'order': order.to_dict()})
