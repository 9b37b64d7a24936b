"""
Point of sale blueprint.

Menu lookups, the session cart and checkout. The cart lives in the Flask
session as the JSON produced by ``cart_pricing.cart_to_dict`` and is only
cleared after the order has been stored.
"""
from flask import Blueprint, session, g, jsonify, request, current_app, send_file

from taqueria.blueprints.metrics import orders_created_total
from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.forms.pos_forms import (
    CartItemForm, CartQuantityForm, CheckoutForm, OrderTypeForm, TableStatusForm,
    form_payload, validate_or_raise
)
from taqueria.models import Category, DiningTable, Modifier, Order, Product, TableStatus
from taqueria.services import cart_pricing, order_service
from taqueria.services.ticket_service import render_ticket_pdf

pos_bp = Blueprint('pos', __name__, url_prefix='/pos')

CART_SESSION_KEY = 'cart'


# =====================================================
# CART SESSION HELPERS
# =====================================================

def get_cart() -> cart_pricing.Cart:
    """Cart stored in the session (empty when missing)."""
    return cart_pricing.cart_from_dict(session.get(CART_SESSION_KEY))


def save_cart(cart: cart_pricing.Cart) -> None:
    session[CART_SESSION_KEY] = cart_pricing.cart_to_dict(cart)
    session.modified = True


def _cart_response(cart: cart_pricing.Cart, status=200):
    totals = cart_pricing.compute_totals(cart, current_app.config['TAX_RATE'])
    return jsonify({
        'status': 'success',
        'cart': cart_pricing.cart_to_dict(cart),
        'totals': totals.to_dict()
    }), status


def _active_modifiers(db_session):
    modifiers = db_session.query(Modifier).filter(Modifier.is_active.is_(True)).order_by(Modifier.id.asc()).all()
    return [m.to_pricing() for m in modifiers]


def _parse_id_list(values, label):
    ids = []
    for value in values:
        if isinstance(value, bool):
            raise ValidationError(f'{label} inválido: {value!r}')
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f'{label} inválido: {value!r}')
    return ids


# =====================================================
# MENU AND TABLES
# =====================================================

@pos_bp.route('/categories')
@require_permission('pos_access')
def categories():
    db_session = get_session()
    rows = db_session.query(Category).filter(
        Category.is_active.is_(True)
    ).order_by(Category.order_position.asc(), Category.name.asc()).all()
    return jsonify({'status': 'success', 'categories': [c.to_dict() for c in rows]})


@pos_bp.route('/products')
@require_permission('pos_access')
def products():
    """Active products, optionally filtered by category or name."""
    db_session = get_session()
    query = db_session.query(Product).filter(Product.is_active.is_(True))
    
    category_id = request.args.get('category_id', type=int)
    if category_id:
        query = query.filter(Product.category_id == category_id)
    
    q = request.args.get('q', '').strip()
    if q:
        query = query.filter(Product.name.ilike(f'%{q}%'))
    
    rows = query.order_by(Product.name.asc()).all()
    return jsonify({'status': 'success', 'products': [p.to_dict() for p in rows]})


@pos_bp.route('/modifiers')
@require_permission('pos_access')
def modifiers():
    """Active modifiers grouped by kind, in the order the dialog shows them."""
    db_session = get_session()
    grouped = {kind.value: [] for kind in cart_pricing.ModifierKind}
    for modifier in db_session.query(Modifier).filter(Modifier.is_active.is_(True)).order_by(Modifier.id.asc()):
        grouped[modifier.kind.value].append(modifier.to_dict())
    return jsonify({'status': 'success', 'modifiers': grouped})


@pos_bp.route('/tables')
@require_permission('pos_access')
def tables():
    db_session = get_session()
    rows = db_session.query(DiningTable).filter(
        DiningTable.is_active.is_(True)
    ).order_by(DiningTable.number.asc()).all()
    return jsonify({'status': 'success', 'tables': [t.to_dict() for t in rows]})


@pos_bp.route('/tables/<int:table_id>/status', methods=['PATCH', 'POST'])
@require_permission('pos_access')
def table_status(table_id):
    """Tables are released by hand (e.g. dirty -> available after cleaning)."""
    form = validate_or_raise(TableStatusForm(formdata=form_payload()))
    db_session = get_session()
    
    table = db_session.query(DiningTable).filter_by(id=table_id).first()
    if not table:
        raise NotFoundError(f'Mesa {table_id} no encontrada')
    
    table.status = TableStatus(form.status.data)
    db_session.commit()
    current_app.logger.info(f"[POS] Table {table.number} -> {table.status.value}")
    return jsonify({'status': 'success', 'table': table.to_dict()})


# =====================================================
# CART
# =====================================================

@pos_bp.route('/cart')
@require_permission('pos_access')
def cart_view():
    return _cart_response(get_cart())


@pos_bp.route('/cart/items', methods=['POST'])
@require_permission('pos_access')
def cart_add():
    """Add a product line with its customization."""
    payload = form_payload()
    form = validate_or_raise(CartItemForm(formdata=payload))
    db_session = get_session()
    
    product = db_session.query(Product).filter_by(id=form.product_id.data).first()
    if not product or not product.is_active:
        raise NotFoundError(f'Producto {form.product_id.data} no encontrado')
    
    priced = product.to_pricing()
    chosen = cart_pricing.resolve_modifiers(
        priced,
        _active_modifiers(db_session) if priced.is_customizable else [],
        tortilla_id=form.tortilla_id.data,
        spice_id=form.spice_id.data,
        extra_ids=_parse_id_list(payload.getlist('extra_ids'), 'Extra')
    )
    
    cart = cart_pricing.add_item(get_cart(), priced, chosen)
    save_cart(cart)
    
    current_app.logger.info(f"[POS] cart_add product={product.id} modifiers={[m.id for m in chosen]}")
    return _cart_response(cart, 201)


@pos_bp.route('/cart/items/<int:line_id>', methods=['PATCH'])
@require_permission('pos_access')
def cart_update(line_id):
    """Set a line's quantity; zero or less removes it."""
    form = validate_or_raise(CartQuantityForm(formdata=form_payload()))
    if form.quantity.data is None:
        raise ValidationError('La cantidad es requerida')
    
    cart = cart_pricing.set_quantity(get_cart(), line_id, form.quantity.data)
    save_cart(cart)
    return _cart_response(cart)


@pos_bp.route('/cart/items/<int:line_id>', methods=['DELETE'])
@require_permission('pos_access')
def cart_remove(line_id):
    cart = cart_pricing.remove_item(get_cart(), line_id)
    save_cart(cart)
    return _cart_response(cart)


@pos_bp.route('/cart', methods=['DELETE'])
@require_permission('pos_access')
def cart_clear():
    cart = cart_pricing.clear(get_cart())
    save_cart(cart)
    return _cart_response(cart)


@pos_bp.route('/cart/order-type', methods=['PUT'])
@require_permission('pos_access')
def cart_order_type():
    form = validate_or_raise(OrderTypeForm(formdata=form_payload()))
    db_session = get_session()
    
    table_id = form.table_id.data
    if form.order_type.data == cart_pricing.OrderType.DINE_IN.value and table_id is not None:
        table = db_session.query(DiningTable).filter_by(id=table_id, is_active=True).first()
        if not table:
            raise NotFoundError(f'Mesa {table_id} no encontrada')
    
    cart = cart_pricing.set_order_type(get_cart(), form.order_type.data, table_id)
    save_cart(cart)
    return _cart_response(cart)


# =====================================================
# CHECKOUT AND TICKET
# =====================================================

@pos_bp.route('/checkout', methods=['POST'])
@require_permission('pos_access')
def checkout():
    """Submit the cart as an order and clear it."""
    form = validate_or_raise(CheckoutForm(formdata=form_payload()))
    db_session = get_session()
    cart = get_cart()
    
    order = order_service.create_order(
        db_session,
        cart,
        form.payment_method.data,
        g.user.id,
        current_app.config['TAX_RATE'],
        customer_name=form.customer_name.data or None,
        notes=form.notes.data or None,
        kitchen_notes=form.kitchen_notes.data or None
    )
    
    save_cart(cart_pricing.clear(cart))
    orders_created_total.labels(order_type=order.type.value, payment_method=order.payment_method.value).inc()
    
    return jsonify({'status': 'success', 'order': order.to_dict()}), 201


@pos_bp.route('/orders/<int:order_id>/ticket.pdf')
@require_permission('pos_access', 'sales_view')
def ticket_pdf(order_id):
    db_session = get_session()
    order = db_session.query(Order).filter_by(id=order_id).first()
    if not order:
        raise NotFoundError(f'Orden {order_id} no encontrada')
    
    business_info = {
        'name': current_app.config.get('BUSINESS_NAME'),
        'address': current_app.config.get('BUSINESS_ADDRESS'),
        'phone': current_app.config.get('BUSINESS_PHONE'),
    }
    pdf = render_ticket_pdf(order, business_info)
    return send_file(
        pdf,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f'{order.order_number}.pdf'
    )
