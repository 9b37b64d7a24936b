"""User and permission models."""
import enum
from sqlalchemy import Column, BigInteger, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from taqueria.database import Base, BigIntPK


class UserRole(enum.Enum):
    """Staff roles."""
    SUPER_ADMIN = 'super_admin'
    ADMIN = 'admin'
    SUPERVISOR = 'supervisor'
    CASHIER = 'cashier'
    WAITER = 'waiter'
    KITCHEN = 'kitchen'


class Permission(enum.Enum):
    """Permission keys checked by the blueprints."""
    POS_ACCESS = 'pos_access'
    KITCHEN_ACCESS = 'kitchen_access'
    SALES_VIEW = 'sales_view'
    USERS_MANAGE = 'users_manage'
    CASH_MANAGE = 'cash_manage'
    REPORTS_VIEW = 'reports_view'
    INVENTORY_MANAGE = 'inventory_manage'


class User(Base):
    """Restaurant staff member."""
    
    __tablename__ = 'app_user'
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CASHIER.value)
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    permissions = relationship(
        'UserPermission',
        back_populates='user',
        cascade='all, delete-orphan',
        foreign_keys='UserPermission.user_id'
    )
    
    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')
    
    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)
    
    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN.value
    
    @property
    def permission_keys(self):
        """Lower-cased permission keys granted to this user."""
        return sorted({p.permission.lower() for p in self.permissions})
    
    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'active': self.active,
            'permissions': self.permission_keys,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class UserPermission(Base):
    """Permission granted to a user."""
    
    __tablename__ = 'user_permission'
    __table_args__ = (
        UniqueConstraint('user_id', 'permission', name='uq_user_permission'),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    permission = Column(String(30), nullable=False)
    granted_by = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    granted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    user = relationship('User', back_populates='permissions', foreign_keys=[user_id])
    
    def __repr__(self):
        return f"<UserPermission(user_id={self.user_id}, permission='{self.permission}')>"
