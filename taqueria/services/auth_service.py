"""
Authentication and permission service.

Permissions are plain keys stored per user. ``super_admin`` users hold every
permission implicitly; inactive users hold none.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.models import Permission, User, UserPermission, UserRole

logger = logging.getLogger(__name__)

PERMISSION_KEYS = frozenset(p.value for p in Permission)
ROLE_KEYS = frozenset(r.value for r in UserRole)


def _normalize_permission(permission) -> str:
    if isinstance(permission, Permission):
        return permission.value
    key = str(permission or '').strip().lower()
    if key not in PERMISSION_KEYS:
        raise ValidationError(f'Permiso desconocido: {permission!r}')
    return key


def has_permission(session: Session, user_id: int, permission) -> bool:
    """
    Check whether ``user_id`` may perform actions guarded by ``permission``.

    The comparison is case-insensitive. Unknown keys are simply not granted.
    """
    if isinstance(permission, Permission):
        key = permission.value
    else:
        key = str(permission or '').strip().lower()
    if not user_id or not key:
        return False

    user = session.query(User).filter_by(id=user_id).first()
    if not user or not user.active:
        return False
    if user.is_super_admin:
        return True
    return key in user.permission_keys


def authenticate(session: Session, email: str, password: str) -> Optional[User]:
    """Return the active user matching the credentials, or None."""
    email = (email or '').strip().lower()
    if not email or not password:
        return None

    user = session.query(User).filter_by(email=email).first()
    if not user or not user.active or not user.check_password(password):
        logger.warning(f"[AUTH] Failed login for {email}")
        return None

    user.last_login = datetime.now()
    session.commit()
    logger.info(f"[AUTH] User {user.id} logged in")
    return user


def create_user(
    session: Session,
    email: str,
    name: str,
    password: str,
    role: str = UserRole.CASHIER.value,
    permissions: List[str] = (),
    phone: str = None
) -> User:
    """Create an active user with the given permissions."""
    email = (email or '').strip().lower()
    if not email or not name or not password:
        raise ValidationError('Email, nombre y contraseña son requeridos')
    role = (role or '').strip().lower()
    if role not in ROLE_KEYS:
        raise ValidationError(f'Rol desconocido: {role!r}')
    keys = {_normalize_permission(p) for p in permissions}

    try:
        user = User(email=email, name=name, phone=phone, role=role, active=True)
        user.set_password(password)
        for key in sorted(keys):
            user.permissions.append(UserPermission(permission=key))
        session.add(user)
        session.commit()
        logger.info(f"[AUTH] Created user {user.id} ({email}, role={role})")
        return user
    except IntegrityError:
        session.rollback()
        raise ValidationError(f'Ya existe un usuario con el email {email}')


def _get_user(session: Session, user_id: int) -> User:
    user = session.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError(f'Usuario {user_id} no encontrado')
    return user


def grant_permission(session: Session, user_id: int, permission, granted_by: int = None) -> User:
    """Grant a permission. Granting an existing permission is a no-op."""
    key = _normalize_permission(permission)
    user = _get_user(session, user_id)
    if key not in user.permission_keys:
        user.permissions.append(UserPermission(permission=key, granted_by=granted_by))
        session.commit()
        logger.info(f"[AUTH] Granted {key} to user {user_id} (by {granted_by})")
    return user


def revoke_permission(session: Session, user_id: int, permission) -> User:
    """Revoke a permission. Revoking a missing permission is a no-op."""
    key = _normalize_permission(permission)
    user = _get_user(session, user_id)
    for entry in list(user.permissions):
        if entry.permission.lower() == key:
            user.permissions.remove(entry)
            session.commit()
            logger.info(f"[AUTH] Revoked {key} from user {user_id}")
            break
    return user


def set_user_active(session: Session, user_id: int, active: bool) -> User:
    user = _get_user(session, user_id)
    user.active = bool(active)
    session.commit()
    return user


def list_users(session: Session) -> List[User]:
    return session.query(User).order_by(User.name.asc()).all()
