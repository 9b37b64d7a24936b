"""Authentication blueprint (session login for staff)."""
from flask import Blueprint, session, g, jsonify, current_app

from taqueria.database import get_session
from taqueria.exceptions import UnauthorizedError
from taqueria.forms.pos_forms import LoginForm, form_payload, validate_or_raise
from taqueria.middleware import require_login
from taqueria.services import auth_service

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Start a session for a staff member."""
    form = validate_or_raise(LoginForm(formdata=form_payload()))
    db_session = get_session()
    
    user = auth_service.authenticate(db_session, form.email.data, form.password.data)
    if not user:
        raise UnauthorizedError('Email o contraseña incorrectos', status_code=401)
    
    # Drop any previous cart along with the previous identity
    session.clear()
    session['user_id'] = user.id
    session.permanent = True
    
    current_app.logger.info(f"[AUTH] Session started for user {user.id}")
    return jsonify({'status': 'success', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'success'})


@auth_bp.route('/me')
@require_login
def me():
    return jsonify({'status': 'success', 'user': g.user.to_dict()})
