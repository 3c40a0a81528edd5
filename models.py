"""
Project: MenuMate (multi-tenant restaurant ordering)
Date: October 2026

Description:
Relational tables for users, restaurants, menus, table sessions, orders and
platform settings. Every tenant-scoped row carries a restaurant_id.
"""

from datetime import datetime, timezone
from decimal import Decimal

from extensions import db

# --------- status vocabularies ---------
ROLE_OWNER = "owner"
ROLE_SUPER_ADMIN = "super_admin"

USER_PENDING = "pending"
USER_ACTIVE = "active"
USER_REJECTED = "rejected"

TIER_FREE = "free"
TIER_PRO = "pro"
TIER_ENTERPRISE = "enterprise"
TIERS = (TIER_FREE, TIER_PRO, TIER_ENTERPRISE)

SESSION_ACTIVE = "active"
SESSION_CLOSED = "closed"
SESSION_PAID = "paid"

PAYMENT_ONLINE = "online"
PAYMENT_COUNTER = "counter"
PAYMENT_SPLIT = "split"
PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"

ORDER_STATUSES = ("pending", "cooking", "ready", "paid", "cancelled")

PLAN_SETTING_KEYS = ("pro_plan_price", "pro_plan_currency", "pro_plan_interval", "pro_plan_name")

ZERO = Decimal("0.00")


def utcnow():
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


def money(value):
    """Decimal-as-string rendering used for every amount in the API."""
    return str(Decimal(value if value is not None else 0).quantize(Decimal("0.01")))


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), default=ROLE_OWNER, nullable=False)
    status = db.Column(db.String(20), default=USER_PENDING, nullable=False, index=True)
    subscription_tier = db.Column(db.String(20), default=TIER_FREE, nullable=False)
    subscription_expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    restaurants = db.relationship("Restaurant", backref="owner", lazy=True)

    @property
    def is_super_admin(self):
        return self.role == ROLE_SUPER_ADMIN

    @property
    def restaurant(self):
        # one owner, one restaurant by convention
        return self.restaurants[0] if self.restaurants else None

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "status": self.status,
            "subscriptionTier": self.subscription_tier,
            "subscriptionExpiresAt": _iso(self.subscription_expires_at),
            "createdAt": _iso(self.created_at),
        }


class Restaurant(db.Model):
    __tablename__ = "restaurants"

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    categories = db.relationship(
        "Category", backref="restaurant", lazy=True, order_by="Category.sort_order", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "name": self.name,
            "slug": self.slug,
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
        }


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(
        db.Integer, db.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)

    items = db.relationship("MenuItem", backref="category", lazy=True, cascade="all, delete-orphan")

    @staticmethod
    def next_sort_order(restaurant_id):
        """New categories are appended after the current last one."""
        current = (
            db.session.query(db.func.max(Category.sort_order))
            .filter(Category.restaurant_id == restaurant_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def to_dict(self, items=None):
        data = {"id": self.id, "restaurantId": self.restaurant_id, "name": self.name, "sortOrder": self.sort_order}
        if items is not None:
            data["items"] = [i.to_dict() for i in items]
        return data


class MenuItem(db.Model):
    __tablename__ = "menu_items"

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    restaurant_id = db.Column(
        db.Integer, db.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    is_available = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "restaurantId": self.restaurant_id,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "isAvailable": self.is_available,
        }


class TableSession(db.Model):
    __tablename__ = "table_sessions"
    __table_args__ = (
        # at most one active session per table
        db.Index(
            "uq_table_sessions_active_table",
            "restaurant_id",
            "table_number",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(
        db.Integer, db.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_number = db.Column(db.String(20), nullable=False)
    session_token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    status = db.Column(db.String(20), default=SESSION_ACTIVE, nullable=False)
    payment_method = db.Column(db.String(20), nullable=True)
    payment_status = db.Column(db.String(20), nullable=True)
    payment_id = db.Column(db.String(120), nullable=True)
    total_amount = db.Column(db.Numeric(10, 2), default=ZERO, nullable=False)
    customer_name = db.Column(db.String(100), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=True)
    started_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    closed_at = db.Column(db.DateTime, nullable=True)

    restaurant = db.relationship("Restaurant", lazy=True)
    orders = db.relationship("Order", backref="table_session", lazy=True, order_by="Order.id")

    def to_dict(self):
        return {
            "id": self.id,
            "restaurantId": self.restaurant_id,
            "tableNumber": self.table_number,
            "status": self.status,
            "totalAmount": money(self.total_amount),
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "startedAt": _iso(self.started_at),
            "closedAt": _iso(self.closed_at),
        }

    def to_owner_dict(self):
        data = self.to_dict()
        data["sessionToken"] = self.session_token
        data["paymentId"] = self.payment_id
        return data


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(
        db.Integer, db.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id = db.Column(db.Integer, db.ForeignKey("table_sessions.id"), nullable=True, index=True)
    table_number = db.Column(db.String(20), nullable=True)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    # snapshot of [{itemId, name, quantity, price}] taken at order time
    items = db.Column(db.JSON, nullable=False, default=list)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(20), default="pending", nullable=False, index=True)
    is_paid = db.Column(db.Boolean, default=False, nullable=False)
    payment_status = db.Column(db.String(20), default=PAYMENT_PENDING, nullable=False)
    payment_id = db.Column(db.String(120), nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @property
    def order_number(self):
        return f"{self.id:08d}"[-8:].upper()

    def to_dict(self):
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "restaurantId": self.restaurant_id,
            "sessionId": self.session_id,
            "tableNumber": self.table_number,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "items": list(self.items or []),
            "totalAmount": money(self.total_amount),
            "status": self.status,
            "isPaid": self.is_paid,
            "paymentStatus": self.payment_status,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }


class PlatformSetting(db.Model):
    __tablename__ = "platform_settings"

    key = db.Column(db.String(80), primary_key=True)
    value = db.Column(db.Text, nullable=False, default="")
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @staticmethod
    def as_dict():
        return {row.key: row.value for row in PlatformSetting.query.all()}

    @staticmethod
    def upsert(key, value):
        row = db.session.get(PlatformSetting, key)
        if row is None:
            row = PlatformSetting(key=key, value=value)
            db.session.add(row)
        else:
            row.value = value
            row.updated_at = utcnow()
        return row
