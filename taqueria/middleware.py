"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, jsonify
from taqueria.database import get_session
from taqueria.models import User


def load_current_user():
    """
    Load the logged-in user into g (Flask's per-request global).
    
    Sets g.user and g.user_id; both stay None for anonymous requests or
    when the stored user was deactivated.
    """
    g.user = None
    g.user_id = None
    
    user_id = session.get('user_id')
    if not user_id:
        return
    
    db_session = get_session()
    user = db_session.query(User).filter_by(id=user_id, active=True).first()
    if user:
        g.user = user
        g.user_id = user.id
    else:
        session.pop('user_id', None)


def require_login(f):
    """
    Decorator: Require user to be logged in.
    
    Answers 401 JSON for anonymous requests.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            return jsonify({'status': 'error', 'message': 'Debes iniciar sesión'}), 401
        return f(*args, **kwargs)
    return decorated_function
