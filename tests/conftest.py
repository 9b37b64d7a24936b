import pytest
from datetime import datetime
from decimal import Decimal
import uuid

from taqueria import create_app, database
from taqueria.database import get_session, create_all, drop_all
from taqueria.models import (
    User, UserPermission, Category, Product, Modifier, ModifierKind,
    DiningTable, Shift, Order, OrderType, OrderStatus
)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function', autouse=True)
def _database(app):
    """Fresh schema for every test."""
    database.db_session.remove()
    drop_all()
    create_all()
    yield
    database.db_session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Database session shared with the request handlers."""
    session = get_session()
    yield session
    session.rollback()


def create_user(session, role='cashier', permissions=(), active=True, password='password123'):
    suffix = str(uuid.uuid4())[:8]
    user = User(
        email=f'{role}-{suffix}@test.com',
        name=f'{role.title()} {suffix}',
        role=role,
        active=active
    )
    user.set_password(password)
    for key in permissions:
        user.permissions.append(UserPermission(permission=key))
    session.add(user)
    session.commit()
    return user


def login(app, user):
    """New test client with ``user`` logged in."""
    client = app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
    return client


@pytest.fixture(scope='function')
def make_user(session):
    """Factory for users with a given role and permissions."""
    def _make(role='cashier', permissions=(), active=True):
        return create_user(session, role, permissions, active=active)
    return _make


@pytest.fixture(scope='function')
def cashier(session):
    return create_user(session, 'cashier', ['pos_access'])


@pytest.fixture(scope='function')
def admin_user(session):
    return create_user(session, 'admin', ['pos_access', 'cash_manage', 'reports_view', 'sales_view',
                                          'inventory_manage', 'users_manage'])


@pytest.fixture(scope='function')
def kitchen_user(session):
    return create_user(session, 'kitchen', ['kitchen_access'])


@pytest.fixture(scope='function')
def waiter(session):
    """User without any permission."""
    return create_user(session, 'waiter')


@pytest.fixture(scope='function')
def client_for(app):
    """Factory for logged-in test clients."""
    def _client(user):
        return login(app, user)
    return _client


@pytest.fixture(scope='function')
def cashier_client(app, cashier):
    return login(app, cashier)


@pytest.fixture(scope='function')
def admin_client(app, admin_user):
    return login(app, admin_user)


@pytest.fixture(scope='function')
def kitchen_client(app, kitchen_user):
    return login(app, kitchen_user)


@pytest.fixture(scope='function')
def category(session):
    category = Category(name='Tacos', order_position=1)
    session.add(category)
    session.commit()
    return category


@pytest.fixture(scope='function')
def taco(session, category):
    """Customizable product priced 15.00."""
    product = Product(
        category_id=category.id,
        name='Taco',
        sku='TACO-01',
        price=Decimal('15.00'),
        cost=Decimal('6.00'),
        stock_quantity=50,
        min_stock=10,
        is_customizable=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def horchata(session, category):
    """Plain product priced 25.00."""
    product = Product(
        category_id=category.id,
        name='Agua de horchata',
        sku='BEB-01',
        price=Decimal('25.00'),
        stock_quantity=5,
        min_stock=10
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def modifiers(session):
    """Two tortillas, two spice levels and two extras, keyed by a short name."""
    rows = {
        'maiz': Modifier(name='Tortilla de maíz', price=Decimal('0.00'), kind=ModifierKind.TORTILLA),
        'harina': Modifier(name='Tortilla de harina', price=Decimal('2.00'), kind=ModifierKind.TORTILLA),
        'sin_picante': Modifier(name='Sin picante', price=Decimal('0.00'), kind=ModifierKind.SPICE),
        'picante': Modifier(name='Muy picante', price=Decimal('0.00'), kind=ModifierKind.SPICE),
        'queso': Modifier(name='Queso extra', price=Decimal('3.00'), kind=ModifierKind.EXTRA),
        'cebolla': Modifier(name='Cebolla asada', price=Decimal('2.00'), kind=ModifierKind.EXTRA),
    }
    for modifier in rows.values():
        session.add(modifier)
    session.commit()
    return rows


@pytest.fixture(scope='function')
def table1(session):
    table = DiningTable(number=1, name='Mesa 1', capacity=4)
    session.add(table)
    session.commit()
    return table


@pytest.fixture(scope='function')
def cashier_shift(session, cashier):
    """Open shift with a 100.00 float."""
    shift = Shift(user_id=cashier.id, initial_cash=Decimal('100.00'), is_active=True)
    session.add(shift)
    session.commit()
    return shift


@pytest.fixture(scope='function')
def make_order(session):
    """Insert an order directly, bypassing the cart."""
    counter = {'n': 0}

    def _make(shift, payment_method, total, status=OrderStatus.PAID, created_at=None, user_id=None):
        counter['n'] += 1
        total = Decimal(total)
        order = Order(
            order_number=f'TEST-{uuid.uuid4().hex[:8]}-{counter["n"]}',
            shift_id=shift.id,
            user_id=user_id or shift.user_id,
            type=OrderType.TAKEOUT,
            status=status,
            payment_method=payment_method,
            subtotal=total,
            tax=Decimal('0.00'),
            total=total,
            created_at=created_at or datetime.now()
        )
        session.add(order)
        session.commit()
        return order

    return _make
