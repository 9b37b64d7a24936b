"""
Permission decorators for the JSON blueprints.
Extends require_login with per-permission checks.
"""

from functools import wraps
from flask import g, current_app

from taqueria.database import get_session
from taqueria.exceptions import UnauthorizedError
from taqueria.middleware import require_login
from taqueria.services import auth_service


def require_permission(*permissions):
    """
    Decorator to check that the current user holds at least one permission.
    
    Usage:
        @require_permission('cash_manage')
        @require_permission('pos_access', 'cash_manage')
    
    Anonymous requests get 401; authenticated users lacking every listed
    permission get 403.
    """
    def decorator(f):
        @wraps(f)
        @require_login
        def decorated_function(*args, **kwargs):
            session = get_session()
            if not any(auth_service.has_permission(session, g.user.id, p) for p in permissions):
                current_app.logger.warning(
                    f"[AUTH] User {g.user.id} denied {f.__name__} (needs {', '.join(permissions)})"
                )
                raise UnauthorizedError('No tienes permisos para realizar esta acción')
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def user_can(permission):
    """Template-style helper for conditional checks inside views."""
    if g.get('user') is None:
        return False
    return auth_service.has_permission(get_session(), g.user.id, permission)
