"""User management blueprint."""
from flask import Blueprint, jsonify, g

from taqueria.database import get_session
from taqueria.decorators.permissions import require_permission
from taqueria.forms.pos_forms import PermissionForm, UserForm, form_payload, validate_or_raise
from taqueria.services import auth_service

users_bp = Blueprint('users', __name__, url_prefix='/users')


@users_bp.route('/')
@require_permission('users_manage')
def list_users():
    users = auth_service.list_users(get_session())
    return jsonify({'status': 'success', 'users': [u.to_dict() for u in users]})


@users_bp.route('/', methods=['POST'])
@require_permission('users_manage')
def create_user():
    payload = form_payload()
    form = validate_or_raise(UserForm(formdata=payload))
    user = auth_service.create_user(
        get_session(),
        email=form.email.data,
        name=form.name.data,
        password=form.password.data,
        role=form.role.data,
        permissions=payload.getlist('permissions'),
        phone=form.phone.data or None
    )
    return jsonify({'status': 'success', 'user': user.to_dict()}), 201


@users_bp.route('/<int:user_id>/permissions', methods=['POST'])
@require_permission('users_manage')
def grant(user_id):
    form = validate_or_raise(PermissionForm(formdata=form_payload()))
    user = auth_service.grant_permission(get_session(), user_id, form.permission.data, granted_by=g.user.id)
    return jsonify({'status': 'success', 'user': user.to_dict()})


@users_bp.route('/<int:user_id>/permissions/<permission>', methods=['DELETE'])
@require_permission('users_manage')
def revoke(user_id, permission):
    user = auth_service.revoke_permission(get_session(), user_id, permission)
    return jsonify({'status': 'success', 'user': user.to_dict()})
