"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables
- flask create-user: Create a staff user with permissions
- flask seed-menu: Load demo categories, products, modifiers and tables
"""

import click
import re
from decimal import Decimal
from taqueria.database import get_session, create_all, drop_all
from taqueria.exceptions import PosError
from taqueria.models import Category, DiningTable, Modifier, ModifierKind, Product, Permission, UserRole

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

DEMO_MODIFIERS = [
    ('Tortilla de maíz', '0.00', ModifierKind.TORTILLA),
    ('Tortilla de harina', '2.00', ModifierKind.TORTILLA),
    ('Sin picante', '0.00', ModifierKind.SPICE),
    ('Picante medio', '0.00', ModifierKind.SPICE),
    ('Muy picante', '0.00', ModifierKind.SPICE),
    ('Queso extra', '5.00', ModifierKind.EXTRA),
    ('Guacamole', '8.00', ModifierKind.EXTRA),
    ('Cebolla asada', '3.00', ModifierKind.EXTRA),
]

DEMO_MENU = {
    'Tacos': [
        ('Taco al pastor', '18.00', True),
        ('Taco de suadero', '18.00', True),
        ('Taco de bistec', '20.00', True),
    ],
    'Bebidas': [
        ('Agua de horchata', '25.00', False),
        ('Refresco', '22.00', False),
    ],
}


def init_cli_commands(app):
    """Register CLI commands with Flask app."""
    
    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first')
    def init_db_command(drop):
        """Create every table."""
        if drop:
            click.confirm('Se borrarán todos los datos. ¿Continuar?', abort=True)
            drop_all()
        create_all()
        click.echo(click.style('✅ Base de datos inicializada', fg='green'))
    
    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--name', prompt=True, help='Full name')
    @click.option('--role', default=UserRole.CASHIER.value, type=click.Choice([r.value for r in UserRole]))
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--permission', 'permissions', multiple=True,
                  type=click.Choice([p.value for p in Permission]), help='Permission to grant (repeatable)')
    def create_user_command(email, name, role, password, permissions):
        """Create a staff user."""
        from taqueria.services.auth_service import create_user
        db_session = get_session()
        
        if not re.match(EMAIL_PATTERN, email):
            click.echo(click.style('❌ Email inválido. Use formato: user@example.com', fg='red'))
            return
        
        if len(password) < 6:
            click.echo(click.style('❌ La contraseña debe tener al menos 6 caracteres.', fg='red'))
            return
        
        try:
            user = create_user(db_session, email, name, password, role=role, permissions=permissions)
        except PosError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            return
        
        click.echo(click.style('\n✅ Usuario creado exitosamente!', fg='green', bold=True))
        click.echo(f'   Email: {user.email}')
        click.echo(f'   ID: {user.id}')
        click.echo(f'   Permisos: {", ".join(user.permission_keys) or "(ninguno)"}')
    
    @app.cli.command('seed-menu')
    @click.option('--tables', default=8, show_default=True, help='Number of dining tables')
    def seed_menu_command(tables):
        """Load a demo menu. Skipped when products already exist."""
        db_session = get_session()
        if db_session.query(Product).count():
            click.echo(click.style('⚠️  Ya hay productos cargados, no se hace nada', fg='yellow'))
            return
        
        try:
            for name, price, kind in DEMO_MODIFIERS:
                db_session.add(Modifier(name=name, price=Decimal(price), kind=kind))
            
            for position, (category_name, products) in enumerate(DEMO_MENU.items()):
                category = Category(name=category_name, order_position=position)
                db_session.add(category)
                for product_name, price, customizable in products:
                    db_session.add(Product(
                        category=category,
                        name=product_name,
                        price=Decimal(price),
                        is_customizable=customizable,
                        stock_quantity=100,
                        min_stock=10
                    ))
            
            for number in range(1, tables + 1):
                db_session.add(DiningTable(number=number, name=f'Mesa {number}', capacity=4))
            
            db_session.commit()
            click.echo(click.style('✅ Menú de ejemplo cargado', fg='green'))
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error al cargar el menú: {str(e)}', fg='red'))
