"""
Forms for the POS JSON API.

Flask-WTF reads JSON bodies as form data, so the same forms validate both
HTML posts and API requests.
"""
from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from wtforms import (
    BooleanField, DecimalField, IntegerField, PasswordField, SelectField, StringField, TextAreaField
)
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional

from taqueria.exceptions import ValidationError

PAYMENT_CHOICES = [
    ('cash', 'Efectivo'),
    ('card', 'Tarjeta'),
    ('transfer', 'Transferencia'),
]

CUT_TYPE_CHOICES = [
    ('partial', 'Corte X (parcial)'),
    ('final', 'Corte Z (final)'),
]


def form_payload():
    """
    Form data for the current request.
    
    JSON bodies are accepted as well; null values are treated as missing.
    """
    if request.is_json:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError('Se esperaba un objeto JSON')
        return ImmutableMultiDict({k: v for k, v in data.items() if v is not None})
    return request.form


def validate_or_raise(form):
    """Validate a form, turning field errors into a ValidationError payload."""
    if not form.validate():
        first = next(iter(form.errors.values()))[0]
        raise ValidationError(str(first), payload={'errors': form.errors})
    return form


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='El email es requerido'), Length(max=255)])
    password = PasswordField('Contraseña', validators=[DataRequired(message='La contraseña es requerida')])


class OpenShiftForm(FlaskForm):
    """Opening float counted by the cashier."""
    
    initial_cash = DecimalField(
        'Efectivo inicial',
        validators=[
            Optional(),
            NumberRange(min=0, message='El efectivo inicial no puede ser negativo')
        ],
        places=2
    )
    notes = TextAreaField('Notas', validators=[Optional(), Length(max=500)])


class CashCutForm(FlaskForm):
    """Counted cash and cut type."""
    
    cash_counted = DecimalField(
        'Efectivo contado',
        validators=[
            Optional(),
            NumberRange(min=0, message='El efectivo contado no puede ser negativo')
        ],
        places=2
    )
    type = SelectField('Tipo de corte', choices=CUT_TYPE_CHOICES, default='partial')
    notes = TextAreaField('Notas', validators=[Optional(), Length(max=500)])


class CheckoutForm(FlaskForm):
    payment_method = SelectField(
        'Método de pago',
        choices=PAYMENT_CHOICES,
        validators=[DataRequired(message='El método de pago es requerido')]
    )
    customer_name = StringField('Cliente', validators=[Optional(), Length(max=200)])
    notes = TextAreaField('Notas', validators=[Optional(), Length(max=500)])
    kitchen_notes = TextAreaField('Notas para cocina', validators=[Optional(), Length(max=500)])


class CartItemForm(FlaskForm):
    """Customization dialog selection."""
    
    product_id = IntegerField('Producto', validators=[InputRequired(message='El producto es requerido')])
    tortilla_id = IntegerField('Tortilla', validators=[Optional()])
    spice_id = IntegerField('Picante', validators=[Optional()])


class CartQuantityForm(FlaskForm):
    quantity = IntegerField('Cantidad', validators=[Optional()])


class OrderTypeForm(FlaskForm):
    order_type = SelectField(
        'Tipo de orden',
        choices=[('dine_in', 'Comer aquí'), ('takeout', 'Para llevar')],
        validators=[DataRequired(message='El tipo de orden es requerido')]
    )
    table_id = IntegerField('Mesa', validators=[Optional()])


class OrderStatusForm(FlaskForm):
    status = SelectField(
        'Estado',
        choices=[
            ('in_prep', 'En preparación'),
            ('ready', 'Lista'),
            ('paid', 'Pagada'),
            ('delivered', 'Entregada'),
            ('cancelled', 'Cancelada'),
        ],
        validators=[DataRequired(message='El estado es requerido')]
    )


class TableStatusForm(FlaskForm):
    status = SelectField(
        'Estado',
        choices=[
            ('available', 'Disponible'),
            ('occupied', 'Ocupada'),
            ('dirty', 'Sucia'),
            ('reserved', 'Reservada'),
        ],
        validators=[DataRequired(message='El estado es requerido')]
    )


class InventoryAdjustmentForm(FlaskForm):
    type = SelectField(
        'Tipo de movimiento',
        choices=[('in', 'Entrada'), ('out', 'Salida'), ('adjustment', 'Ajuste')],
        validators=[DataRequired(message='El tipo de movimiento es requerido')]
    )
    quantity = IntegerField(
        'Cantidad',
        validators=[
            Optional(),
            NumberRange(min=0, message='La cantidad no puede ser negativa')
        ]
    )
    reason = StringField('Motivo', validators=[Optional(), Length(max=255)])
    unit_cost = DecimalField('Costo unitario', validators=[Optional()], places=2)


class PermissionForm(FlaskForm):
    permission = StringField('Permiso', validators=[DataRequired(message='El permiso es requerido'), Length(max=30)])


class UserForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='El email es requerido'), Length(max=255)])
    name = StringField('Nombre', validators=[DataRequired(message='El nombre es requerido'), Length(max=200)])
    password = PasswordField('Contraseña', validators=[DataRequired(message='La contraseña es requerida'), Length(min=6)])
    role = StringField('Rol', validators=[DataRequired(message='El rol es requerido')])
    phone = StringField('Teléfono', validators=[Optional(), Length(max=50)])
    active = BooleanField('Activo', default=True)
