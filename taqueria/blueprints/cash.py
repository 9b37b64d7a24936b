"""
Cash blueprint: shifts and cash cuts.

Cashiers open their own shift. Reconciling it (summary, preview, cuts)
needs ``cash_manage``, which covers every shift.
"""
from flask import Blueprint, jsonify, request, current_app, g

from taqueria.blueprints.metrics import cash_cuts_total
from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission, user_can
from taqueria.exceptions import NotFoundError, UnauthorizedError
from taqueria.forms.pos_forms import CashCutForm, OpenShiftForm, form_payload, validate_or_raise
from taqueria.services import cash_cut_service, shift_service

cash_bp = Blueprint('cash', __name__, url_prefix='/cash')


def _get_owned_shift(db_session, shift_id):
    shift = shift_service.get_shift(db_session, shift_id)
    if shift.user_id != g.user.id and not user_can('cash_manage'):
        raise UnauthorizedError('No puedes operar el turno de otro usuario')
    return shift


def _threshold():
    return current_app.config['CASH_DIFFERENCE_THRESHOLD']


@cash_bp.route('/shifts', methods=['POST'])
@require_permission('pos_access', 'cash_manage')
def open_shift():
    """Open a shift for the current user."""
    form = validate_or_raise(OpenShiftForm(formdata=form_payload()))
    shift = shift_service.open_shift(
        get_session(),
        g.user.id,
        form.initial_cash.data,
        notes=form.notes.data or None
    )
    return jsonify({'status': 'success', 'shift': shift.to_dict()}), 201


@cash_bp.route('/shifts/active')
@require_permission('pos_access', 'cash_manage')
def active_shift():
    shift = shift_service.get_active_shift_for_user(get_session(), g.user.id)
    if not shift:
        raise NotFoundError('No tienes un turno abierto')
    return jsonify({'status': 'success', 'shift': shift.to_dict()})


@cash_bp.route('/shifts')
@require_permission('cash_manage')
def list_shifts():
    db_session = get_session()
    if request.args.get('active') == '1':
        shifts = shift_service.list_active_shifts(db_session)
    else:
        shifts = shift_service.list_shifts(db_session, user_id=request.args.get('user_id', type=int))
    return jsonify({'status': 'success', 'shifts': [s.to_dict() for s in shifts]})


@cash_bp.route('/shifts/<int:shift_id>/summary')
@require_permission('cash_manage')
def shift_summary(shift_id):
    summary = cash_cut_service.shift_summary(get_session(), shift_id)
    return jsonify({'status': 'success', 'summary': summary})


@cash_bp.route('/shifts/<int:shift_id>/cuts/preview', methods=['POST'])
@require_permission('cash_manage')
def preview_cut(shift_id):
    form = validate_or_raise(CashCutForm(formdata=form_payload()))
    result = cash_cut_service.preview_cash_cut(
        get_session(), shift_id, form.cash_counted.data, form.type.data, _threshold()
    )
    return jsonify({'status': 'success', 'reconciliation': result.to_dict()})


@cash_bp.route('/shifts/<int:shift_id>/cuts', methods=['POST'])
@require_permission('cash_manage')
def perform_cut(shift_id):
    """Store a partial (X) or final (Z) cash cut."""
    form = validate_or_raise(CashCutForm(formdata=form_payload()))
    cut, result = cash_cut_service.perform_cash_cut(
        get_session(),
        shift_id,
        g.user.id,
        form.cash_counted.data,
        form.type.data,
        threshold=_threshold(),
        notes=form.notes.data or None
    )
    cash_cuts_total.labels(type=result.cut_type.value, notable=str(result.is_notable).lower()).inc()
    
    return jsonify({
        'status': 'success',
        'cash_cut': cut.to_dict(),
        'reconciliation': result.to_dict()
    }), 201


@cash_bp.route('/cuts')
@require_permission('pos_access', 'cash_manage')
def list_cuts():
    db_session = get_session()
    shift_id = request.args.get('shift_id', type=int)
    if shift_id:
        _get_owned_shift(db_session, shift_id)
    elif not user_can('cash_manage'):
        raise UnauthorizedError('Indica el turno a consultar')
    cuts = cash_cut_service.list_cash_cuts(db_session, shift_id=shift_id)
    return jsonify({'status': 'success', 'cash_cuts': [c.to_dict() for c in cuts]})
