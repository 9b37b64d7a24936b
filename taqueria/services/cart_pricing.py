"""
Cart pricing engine.

Pure functions over immutable cart values. A line is priced as
(product price + modifier prices) * quantity and the cart subtotal is always
recomputed from its lines. Tax is a single process-wide rate applied on top
of the subtotal. Nothing in this module touches Flask or the database; the
POS blueprint keeps the cart in the user session and the order service
persists it on checkout.
"""
import enum
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.utils.money import ZERO, money_str, round2, to_money


class ModifierKind(enum.Enum):
    """Modifier groups offered when customizing a product."""
    TORTILLA = 'tortilla'
    SPICE = 'spice'
    EXTRA = 'extra'


class OrderType(enum.Enum):
    """Order type enum."""
    DINE_IN = 'dine_in'
    TAKEOUT = 'takeout'


def _coerce_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f'{label} inválido: {value!r}')


def _coerce_id(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{label} inválido: {value!r}')
    return value


@dataclass(frozen=True)
class Modifier:
    """Add-on or variant that changes the price of a line."""
    id: int
    name: str
    price: Decimal
    kind: ModifierKind

    def __post_init__(self):
        object.__setattr__(self, 'price', to_money(self.price, 'precio del modificador'))
        object.__setattr__(self, 'kind', _coerce_enum(ModifierKind, self.kind, 'Tipo de modificador'))
        if self.price < 0:
            raise ValidationError(f'El modificador "{self.name}" no puede tener precio negativo')


@dataclass(frozen=True)
class Product:
    """Menu product as seen by the cart."""
    id: int
    name: str
    price: Decimal
    is_customizable: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'price', to_money(self.price, 'precio del producto'))
        if self.price < 0:
            raise ValidationError(f'El producto "{self.name}" no puede tener precio negativo')


@dataclass(frozen=True)
class CartLineItem:
    """One product selection with its modifiers and quantity."""
    id: int
    product: Product
    modifiers: Tuple[Modifier, ...] = ()
    quantity: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'modifiers', tuple(self.modifiers))
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError(f'Cantidad inválida: {self.quantity!r}')
        if self.quantity < 1:
            raise ValidationError('La cantidad debe ser mayor a 0')

    @property
    def unit_base(self) -> Decimal:
        """Product price plus every selected modifier."""
        return self.product.price + sum((m.price for m in self.modifiers), ZERO)

    @property
    def line_total(self) -> Decimal:
        return self.unit_base * self.quantity


@dataclass(frozen=True)
class Cart:
    """
    In-progress order.

    ``next_line_id`` only grows, so a removed line id is never reused within
    the same cart.
    """
    items: Tuple[CartLineItem, ...] = ()
    order_type: OrderType = OrderType.DINE_IN
    table_id: Optional[int] = None
    next_line_id: int = 1

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))
        object.__setattr__(self, 'order_type', _coerce_enum(OrderType, self.order_type, 'Tipo de orden'))

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), ZERO)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, line_id: int) -> CartLineItem:
        for item in self.items:
            if item.id == line_id:
                return item
        raise NotFoundError(f'La línea {line_id} no está en el carrito')


@dataclass(frozen=True)
class CartTotals:
    """Priced totals for a cart."""
    subtotal: Decimal
    tax: Decimal
    grand_total: Decimal
    item_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': money_str(self.subtotal),
            'tax': money_str(self.tax),
            'grand_total': money_str(self.grand_total),
            'item_count': self.item_count,
        }


# =====================================================
# CART OPERATIONS
# =====================================================

def add_item(cart: Cart, product: Product, modifiers: Sequence[Modifier] = ()) -> Cart:
    """
    Append a new line with quantity 1.

    Identical product and modifier combinations are NOT merged: each add
    creates its own line.
    """
    if not isinstance(product, Product):
        raise ValidationError('Producto inválido')
    for modifier in modifiers:
        if not isinstance(modifier, Modifier):
            raise ValidationError('Modificador inválido')

    line = CartLineItem(id=cart.next_line_id, product=product, modifiers=tuple(modifiers), quantity=1)
    return replace(cart, items=cart.items + (line,), next_line_id=cart.next_line_id + 1)


def set_quantity(cart: Cart, line_id: int, quantity: int) -> Cart:
    """Update a line's quantity; zero or less removes the line."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f'Cantidad inválida: {quantity!r}')

    target = cart.find_item(line_id)

    if quantity <= 0:
        items = tuple(item for item in cart.items if item.id != target.id)
    else:
        items = tuple(
            replace(item, quantity=quantity) if item.id == target.id else item
            for item in cart.items
        )
    return replace(cart, items=items)


def remove_item(cart: Cart, line_id: int) -> Cart:
    """Shortcut for ``set_quantity(cart, line_id, 0)``."""
    return set_quantity(cart, line_id, 0)


def compute_totals(cart: Cart, tax_rate: Decimal) -> CartTotals:
    """
    Price the cart.

    ``tax = round2(subtotal * tax_rate)`` and ``grand_total = subtotal + tax``.
    The rate must be a Decimal (or int/str) within [0, 1].
    """
    if tax_rate is None or isinstance(tax_rate, (bool, float)):
        raise ValidationError(f'Tasa de impuesto inválida: {tax_rate!r}')
    try:
        rate = Decimal(tax_rate)
    except (ArithmeticError, TypeError, ValueError):
        raise ValidationError(f'Tasa de impuesto inválida: {tax_rate!r}')
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ValidationError(f'La tasa de impuesto debe estar entre 0 y 1: {tax_rate}')

    subtotal = cart.subtotal
    tax = round2(subtotal * rate)
    return CartTotals(
        subtotal=subtotal,
        tax=tax,
        grand_total=subtotal + tax,
        item_count=cart.item_count,
    )


def clear(cart: Cart) -> Cart:
    """Empty cart after a successful submission. The order type is kept."""
    return Cart(order_type=cart.order_type, next_line_id=cart.next_line_id)


def set_order_type(cart: Cart, order_type: OrderType, table_id: Optional[int] = None) -> Cart:
    """Switch between dine-in (with a table) and takeout (never a table)."""
    order_type = _coerce_enum(OrderType, order_type, 'Tipo de orden')
    if order_type == OrderType.TAKEOUT:
        return replace(cart, order_type=order_type, table_id=None)
    if table_id is not None:
        table_id = _coerce_id(table_id, 'Mesa')
    return replace(cart, order_type=order_type, table_id=table_id)


def validate_for_submission(cart: Cart) -> None:
    """Checks that must hold before an order is sent to the kitchen."""
    if cart.is_empty:
        raise ValidationError('El carrito está vacío')
    if cart.order_type == OrderType.DINE_IN and cart.table_id is None:
        raise ValidationError('Selecciona una mesa para continuar')


# =====================================================
# CUSTOMIZATION
# =====================================================

def _pick_single(options: List[Modifier], selected_id: Optional[int], label: str) -> Modifier:
    if selected_id is None:
        if not options:
            raise ValidationError(f'Debes elegir {label}')
        # First available option is pre-selected
        return options[0]
    for option in options:
        if option.id == selected_id:
            return option
    raise NotFoundError(f'Opción de {label} no encontrada: {selected_id}')


def resolve_modifiers(
    product: Product,
    available: Iterable[Modifier],
    tortilla_id: Optional[int] = None,
    spice_id: Optional[int] = None,
    extra_ids: Sequence[int] = (),
) -> Tuple[Modifier, ...]:
    """
    Turn a customization dialog selection into the modifiers of a new line.

    Customizable products need exactly one tortilla and one spice level
    (defaulting to the first option of each group) plus any number of
    extras. Result order: tortilla, spice, extras in the order given.
    """
    available = list(available)
    extra_ids = list(extra_ids or ())

    if not product.is_customizable:
        if tortilla_id is not None or spice_id is not None or extra_ids:
            raise ValidationError(f'El producto "{product.name}" no admite modificadores')
        return ()

    tortillas = [m for m in available if m.kind == ModifierKind.TORTILLA]
    spices = [m for m in available if m.kind == ModifierKind.SPICE]
    extras = {m.id: m for m in available if m.kind == ModifierKind.EXTRA}

    chosen = [
        _pick_single(tortillas, tortilla_id, 'un tipo de tortilla'),
        _pick_single(spices, spice_id, 'un nivel de picante'),
    ]

    seen = set()
    for extra_id in extra_ids:
        if extra_id in seen:
            raise ValidationError(f'Extra repetido: {extra_id}')
        seen.add(extra_id)
        if extra_id not in extras:
            raise NotFoundError(f'Extra no encontrado: {extra_id}')
        chosen.append(extras[extra_id])

    return tuple(chosen)


# =====================================================
# SESSION SERIALIZATION
# =====================================================

def _modifier_to_dict(modifier: Modifier) -> Dict[str, Any]:
    return {
        'id': modifier.id,
        'name': modifier.name,
        'price': money_str(modifier.price),
        'kind': modifier.kind.value,
    }


def line_to_dict(item: CartLineItem) -> Dict[str, Any]:
    return {
        'id': item.id,
        'product': {
            'id': item.product.id,
            'name': item.product.name,
            'price': money_str(item.product.price),
            'is_customizable': item.product.is_customizable,
        },
        'modifiers': [_modifier_to_dict(m) for m in item.modifiers],
        'quantity': item.quantity,
        'unit_base': money_str(item.unit_base),
        'line_total': money_str(item.line_total),
    }


def cart_to_dict(cart: Cart) -> Dict[str, Any]:
    """JSON-safe representation (money as strings) for the Flask session."""
    return {
        'items': [line_to_dict(item) for item in cart.items],
        'order_type': cart.order_type.value,
        'table_id': cart.table_id,
        'next_line_id': cart.next_line_id,
    }


def cart_from_dict(data: Optional[Dict[str, Any]]) -> Cart:
    """Rebuild a cart stored with ``cart_to_dict``. ``None`` gives an empty cart."""
    if not data:
        return Cart()
    try:
        items = []
        for raw in data.get('items', []):
            raw_product = raw['product']
            product = Product(
                id=raw_product['id'],
                name=raw_product['name'],
                price=raw_product['price'],
                is_customizable=bool(raw_product.get('is_customizable', False)),
            )
            modifiers = tuple(
                Modifier(id=m['id'], name=m['name'], price=m['price'], kind=m['kind'])
                for m in raw.get('modifiers', [])
            )
            items.append(CartLineItem(id=raw['id'], product=product, modifiers=modifiers, quantity=raw['quantity']))

        next_line_id = data.get('next_line_id') or (max((i.id for i in items), default=0) + 1)
        return Cart(
            items=tuple(items),
            order_type=data.get('order_type', OrderType.DINE_IN.value),
            table_id=data.get('table_id'),
            next_line_id=next_line_id,
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(f'Carrito inválido: {e}')
