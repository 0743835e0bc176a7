# storefront/db_models.py
"""
SQLAlchemy ORM Models for the Storefront API.

Catalog (products -> variants -> images / country prices / shipping),
orders, cart, wishlist and addresses.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
import enum
import uuid

from sqlalchemy import (
    String, Integer, BigInteger, Boolean, Text, DateTime, Uuid,
    Numeric, ForeignKey, Index, CheckConstraint, UniqueConstraint,
    Enum as SQLEnum, JSON, func
)
from sqlalchemy.orm import (
    Mapped, mapped_column, relationship
)
from sqlalchemy.dialects.postgresql import JSONB

from storefront.database import Base

# BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid) on SQLite
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
JSONType = JSON().with_variant(JSONB, "postgresql")

# ============================================================================
# ENUMS (matching PostgreSQL ENUMs)
# ============================================================================

class OrderStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


# ============================================================================
# 1. TAXONOMY (L1 categories -> L2 subcategories -> L3 product types)
# ============================================================================

class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(255))

    subcategories: Mapped[List["Subcategory"]] = relationship(back_populates="category")


class Subcategory(Base):
    __tablename__ = "subcategories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    category_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped["Category"] = relationship(back_populates="subcategories")
    product_types: Mapped[List["ProductType"]] = relationship(back_populates="subcategory")


class ProductType(Base):
    __tablename__ = "product_types"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    subcategory_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("subcategories.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    subcategory: Mapped["Subcategory"] = relationship(back_populates="product_types")


# ============================================================================
# 2. PRODUCTS (parent entity, natural key = handle)
# ============================================================================

class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    handle: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body_html: Mapped[Optional[str]] = mapped_column(Text)
    vendor: Mapped[Optional[str]] = mapped_column(String(255))
    product_category: Mapped[Optional[str]] = mapped_column(String(500))
    product_type: Mapped[Optional[str]] = mapped_column(String(255))
    tags: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="active", nullable=False)
    seo_title: Mapped[Optional[str]] = mapped_column(String(500))
    seo_description: Mapped[Optional[str]] = mapped_column(Text)
    is_gift_card: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("categories.id", ondelete="SET NULL"))
    subcategory_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("subcategories.id", ondelete="SET NULL"))
    product_type_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("product_types.id", ondelete="SET NULL"))

    # Relationships
    metafield: Mapped[Optional["ProductMetafield"]] = relationship(
        back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )
    variants: Mapped[List["ProductVariant"]] = relationship(
        back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )
    images: Mapped[List["ProductImage"]] = relationship(
        back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_products_category", "category_id"),
        Index("idx_products_status", "status"),
    )


class ProductMetafield(Base):
    __tablename__ = "product_metafields"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False)
    attributes: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    product: Mapped["Product"] = relationship(back_populates="metafield")


# ============================================================================
# 3. PRODUCT VARIANTS (child entity, natural key = sku)
# ============================================================================

class ProductVariant(TimestampMixin, Base):
    __tablename__ = "product_variants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(255))
    option1_name: Mapped[Optional[str]] = mapped_column(String(255))
    option1_value: Mapped[Optional[str]] = mapped_column(String(255))
    option2_name: Mapped[Optional[str]] = mapped_column(String(255))
    option2_value: Mapped[Optional[str]] = mapped_column(String(255))
    option3_name: Mapped[Optional[str]] = mapped_column(String(255))
    option3_value: Mapped[Optional[str]] = mapped_column(String(255))
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    compare_at_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    cost_per_item: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    inventory_qty: Mapped[Optional[int]] = mapped_column(Integer)
    inventory_policy: Mapped[Optional[str]] = mapped_column(String(50))
    inventory_tracker: Mapped[Optional[str]] = mapped_column(String(50))
    requires_shipping: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    taxable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3))
    weight_unit: Mapped[Optional[str]] = mapped_column(String(10))

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="variants")
    prices: Mapped[List["VariantPrice"]] = relationship(
        back_populates="variant", cascade="all, delete-orphan", passive_deletes=True
    )
    shipping: Mapped[List["ShippingDetail"]] = relationship(
        back_populates="variant", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_variants_product", "product_id"),
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    variant_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"))
    image_src: Mapped[str] = mapped_column(Text, nullable=False)
    image_position: Mapped[Optional[int]] = mapped_column(Integer)
    image_alt_text: Mapped[Optional[str]] = mapped_column(String(500))

    product: Mapped["Product"] = relationship(back_populates="images")


class VariantPrice(Base):
    __tablename__ = "variant_prices"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    variant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False)
    country_code: Mapped[str] = mapped_column(String(8), nullable=False)
    included: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    compare_at_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    variant: Mapped["ProductVariant"] = relationship(back_populates="prices")

    __table_args__ = (
        UniqueConstraint("variant_id", "country_code", name="uq_variant_prices_country"),
    )


class ShippingDetail(Base):
    __tablename__ = "shipping_details"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    variant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False)
    length_cm: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    width_cm: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    height_cm: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    variant: Mapped["ProductVariant"] = relationship(back_populates="shipping")


# ============================================================================
# 4. ADDRESSES
# ============================================================================

class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    address_line_1: Mapped[str] = mapped_column(String(500), nullable=False)
    address_line_2: Mapped[Optional[str]] = mapped_column(String(500))
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(255))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    country: Mapped[Optional[str]] = mapped_column(String(100))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_addresses_user", "user_id"),
    )


# ============================================================================
# 5. ORDERS (parent entity) + ORDER ITEMS
# ============================================================================

class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    address_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("addresses.id", ondelete="SET NULL"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name="order_status"),
        default=OrderStatus.pending,
        nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="payment_status"),
        default=PaymentStatus.pending,
        nullable=False
    )

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_orders_user", "user_id"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    variant_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="SET NULL"))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_purchase: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_items_quantity"),
        Index("idx_order_items_order", "order_id"),
    )


# ============================================================================
# 6. CART + WISHLIST
# ============================================================================

class CartItem(TimestampMixin, Base):
    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    variant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    variant: Mapped["ProductVariant"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "variant_id", name="uq_cart_items_user_variant"),
        CheckConstraint("quantity > 0", name="chk_cart_items_quantity"),
    )


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    variant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False)

    variant: Mapped["ProductVariant"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "variant_id", name="uq_wishlist_user_variant"),
    )
