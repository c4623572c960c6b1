from app.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sqlalchemy import CheckConstraint
import enum
import json


def _enum_values(enum_cls):
    # Persist the lower-case value ('user', 'paid'), not the member name.
    return [member.value for member in enum_cls]


class UserRole(enum.Enum):
    USER = 'user'
    ADMIN = 'admin'


class OrderStatus(enum.Enum):
    PENDING = 'pending'
    PAID = 'paid'
    SHIPPED = 'shipped'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self):
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, value):
        """Return the member for ``value`` or ``None`` if it is unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or '').strip().lower())
        except ValueError:
            return None


TERMINAL_STATUSES = frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED})

# Owner may only cancel; admin moves orders forward.
OWNER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.CANCELLED},
}
ADMIN_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.SHIPPED},
    OrderStatus.PAID: {OrderStatus.SHIPPED},
}


def can_transition(current, target, by_admin=False):
    """Check whether an order in ``current`` may move to ``target``.

    Terminal orders never move. For admins, re-submitting the current
    status of a live order is accepted as a no-op so the edit form can
    change only the address.
    """
    if current is None or target is None or current.is_terminal:
        return False
    if by_admin:
        if target == current:
            return True
        return target in ADMIN_TRANSITIONS.get(current, set())
    return target in OWNER_TRANSITIONS.get(current, set())


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=True)
    # Always stored lower-cased and stripped.
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(UserRole, values_callable=_enum_values),
        nullable=False,
        default=UserRole.USER)
    avatar = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    gender = db.Column(db.String(20), nullable=True)
    dob = db.Column(db.String(20), nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    # Relationships
    addresses = db.relationship(
        'Address',
        backref='user',
        lazy='dynamic',
        cascade='all, delete-orphan')
    orders = db.relationship('Order', backref='user', lazy='dynamic')
    cart = db.relationship(
        'Cart',
        backref='user',
        uselist=False,
        cascade='all, delete-orphan')

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.email}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    # Integer VND, no minor unit.
    price = db.Column(db.Integer, nullable=False, default=0)
    # Legacy single image; mirrors images[0].
    image = db.Column(db.String(255), nullable=True)
    # JSON array of paths under the static root, e.g. ["/images/a.jpg"]
    images = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True, index=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    order_items = db.relationship(
        'OrderItem',
        backref='product',
        lazy='dynamic')

    def get_images(self):
        """Stored image list, falling back to the legacy column."""
        if self.images and self.images.strip():
            try:
                data = json.loads(self.images)
            except ValueError:
                data = None
            if isinstance(data, list):
                return [str(p) for p in data if p]
        return [self.image] if self.image else []

    def set_images(self, paths, fallback=None):
        paths = [p for p in (paths or []) if p]
        self.images = json.dumps(paths, ensure_ascii=False)
        self.image = paths[0] if paths else fallback

    def __repr__(self):
        return f'<Product {self.title}>'


class Cart(db.Model):
    __tablename__ = 'carts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        unique=True,
        nullable=False)
    # JSON object: line key -> quantity
    items = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<Cart {self.id} for user {self.user_id}>'


class Address(db.Model):
    __tablename__ = 'addresses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    recipient = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    street = db.Column(db.Text, nullable=False)
    city = db.Column(db.String(100), nullable=False)
    postcode = db.Column(db.String(10), nullable=True)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    @property
    def full_text(self):
        parts = [self.street, self.city, self.postcode]
        return ', '.join(p for p in parts if p)

    def __repr__(self):
        return f'<Address {self.id} for user {self.user_id}>'


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'users.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    total = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(
        db.Enum(OrderStatus, values_callable=_enum_values),
        default=OrderStatus.PENDING,
        nullable=False)
    address_id = db.Column(
        db.Integer,
        db.ForeignKey('addresses.id', ondelete='SET NULL'),
        nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    address = db.relationship('Address', foreign_keys=[address_id])
    items = db.relationship(
        'OrderItem',
        backref='order',
        lazy='dynamic',
        cascade='all, delete-orphan')

    @property
    def is_editable(self):
        return not self.status.is_terminal

    def __repr__(self):
        return f'<Order {self.id} status={self.status}>'


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'orders.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='SET NULL'),
        nullable=True,
        index=True)
    quantity = db.Column(db.Integer, nullable=False)
    # Unit price snapshot taken at checkout.
    price = db.Column(db.Integer, nullable=False)
    option = db.Column(db.String(50), nullable=True)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_order_quantity_positive'),
    )

    @property
    def line_total(self):
        return self.price * self.quantity

    @property
    def title(self):
        prod = self.product
        return prod.title if prod else f'Sản phẩm #{self.product_id}'

    def __repr__(self):
        return (
            f"<OrderItem {self.id} order={self.order_id} "
            f"product={self.product_id}>"
        )
