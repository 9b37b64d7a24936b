"""Inventory blueprint."""
from flask import Blueprint, jsonify, request, g

from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.exceptions import ValidationError
from taqueria.forms.pos_forms import InventoryAdjustmentForm, form_payload, validate_or_raise
from taqueria.services import inventory_service

inventory_bp = Blueprint('inventory', __name__, url_prefix='/inventory')


@inventory_bp.route('/')
@require_permission('inventory_manage')
def index():
    products = inventory_service.list_inventory(get_session())
    return jsonify({'status': 'success', 'products': [p.to_dict() for p in products]})


@inventory_bp.route('/low-stock')
@require_permission('inventory_manage')
def low_stock():
    threshold = request.args.get('threshold', type=int)
    products = inventory_service.list_low_stock(get_session(), threshold=threshold)
    return jsonify({'status': 'success', 'products': [p.to_dict() for p in products]})


@inventory_bp.route('/products/<int:product_id>/adjust', methods=['POST'])
@require_permission('inventory_manage')
def adjust(product_id):
    form = validate_or_raise(InventoryAdjustmentForm(formdata=form_payload()))
    if form.quantity.data is None:
        raise ValidationError('La cantidad es requerida')
    
    movement = inventory_service.adjust_inventory(
        get_session(),
        product_id,
        form.quantity.data,
        form.type.data,
        reason=form.reason.data or None,
        user_id=g.user.id,
        unit_cost=form.unit_cost.data
    )
    return jsonify({'status': 'success', 'movement': movement.to_dict()}), 201


@inventory_bp.route('/movements')
@require_permission('inventory_manage')
def movements():
    rows = inventory_service.list_movements(get_session(), product_id=request.args.get('product_id', type=int))
    return jsonify({'status': 'success', 'movements': [m.to_dict() for m in rows]})
