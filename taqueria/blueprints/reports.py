"""Reports blueprint."""
from datetime import date, datetime

from flask import Blueprint, jsonify, request

from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.exceptions import ValidationError
from taqueria.services.report_service import report_to_dict, sales_report

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _parse_date(value, default):
    if not value:
        return default
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'Fecha inválida: {value}. Usá AAAA-MM-DD')


@reports_bp.route('/sales')
@require_permission('reports_view', 'sales_view')
def sales():
    """Sales between ``from`` and ``to`` (inclusive, default today)."""
    today = date.today()
    date_from = _parse_date(request.args.get('from'), today)
    date_to = _parse_date(request.args.get('to'), date_from)
    
    report = sales_report(get_session(), date_from, date_to)
    return jsonify({'status': 'success', 'report': report_to_dict(report)})
