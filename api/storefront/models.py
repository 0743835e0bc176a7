from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.db_models import OrderStatus, PaymentStatus
from storefront.services.conversions import split_tags

MarketCode = Literal["IN", "ALL"]

# ============================================================================
# Catalog input
# ============================================================================

class CountryPriceIn(BaseModel):
    included: bool = False
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None

class VariantIn(BaseModel):
    sku: Optional[str] = None
    barcode: Optional[str] = None
    option1_name: Optional[str] = None
    option1_value: Optional[str] = None
    option2_name: Optional[str] = None
    option2_value: Optional[str] = None
    option3_name: Optional[str] = None
    option3_value: Optional[str] = None
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    cost_per_item: Optional[Decimal] = None
    inventory_qty: Optional[int] = None
    inventory_policy: Optional[str] = None
    inventory_tracker: Optional[str] = None
    requires_shipping: bool = False
    taxable: bool = False
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    image_src: Optional[str] = None
    image_position: Optional[int] = None
    image_alt_text: Optional[str] = None
    country_prices: Dict[MarketCode, CountryPriceIn] = Field(default_factory=dict)
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None

class ProductCreateIn(BaseModel):
    handle: str = Field(min_length=1)
    title: str = Field(min_length=1)
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_category: Optional[str] = None
    product_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool = False
    status: str = "active"
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_gift_card: bool = False
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    product_type_id: Optional[int] = None
    metafields: Dict[str, Any] = Field(default_factory=dict)
    variants: List[VariantIn] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v: Union[str, List[str], None]) -> List[str]:
        return split_tags(v)

class ProductUpdateIn(BaseModel):
    """Coalesce update: a field left out (or sent as null) keeps its stored value."""
    handle: Optional[str] = None
    title: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_category: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[List[str]] = None
    published: Optional[bool] = None
    status: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_gift_card: Optional[bool] = None
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    product_type_id: Optional[int] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v: Union[str, List[str], None]) -> Optional[List[str]]:
        return None if v is None else split_tags(v)

# ============================================================================
# Catalog output
# ============================================================================

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    handle: str
    title: str
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_category: Optional[str] = None
    product_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool
    status: str
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    is_gift_card: bool
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    product_type_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class VariantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    sku: Optional[str] = None
    barcode: Optional[str] = None
    option1_name: Optional[str] = None
    option1_value: Optional[str] = None
    option2_name: Optional[str] = None
    option2_value: Optional[str] = None
    option3_name: Optional[str] = None
    option3_value: Optional[str] = None
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    cost_per_item: Optional[Decimal] = None
    inventory_qty: Optional[int] = None
    inventory_policy: Optional[str] = None
    inventory_tracker: Optional[str] = None
    requires_shipping: bool
    taxable: bool
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None

class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: UUID
    variant_id: Optional[UUID] = None
    image_src: str
    image_position: Optional[int] = None
    image_alt_text: Optional[str] = None

class VariantPriceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    variant_id: UUID
    country_code: str
    included: bool
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None

class ShippingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    variant_id: UUID
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None

class MetafieldOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attributes: Dict[str, Any] = Field(default_factory=dict)

class VariantDetailOut(VariantOut):
    prices: List[VariantPriceOut] = Field(default_factory=list)
    shipping: List[ShippingOut] = Field(default_factory=list)

class ProductDetailOut(ProductOut):
    metafield: Optional[MetafieldOut] = None
    variants: List[VariantDetailOut] = Field(default_factory=list)
    images: List[ImageOut] = Field(default_factory=list)

class ProductWriteOut(BaseModel):
    product_id: UUID
    product: ProductOut
    variants: List[VariantOut]
    images: List[ImageOut]
    prices: List[VariantPriceOut]
    shipping: List[ShippingOut]
    skipped_skus: List[str] = Field(default_factory=list)

class ImportFailure(BaseModel):
    handle: str
    error: str
    message: str

class ImportReport(BaseModel):
    policy: str
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    variants_skipped: int = 0
    product_ids: List[UUID] = Field(default_factory=list)
    failures: List[ImportFailure] = Field(default_factory=list)

# ============================================================================
# Orders
# ============================================================================

class OrderItemIn(BaseModel):
    product_id: UUID
    variant_id: Optional[UUID] = None
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)

class OrderCreateIn(BaseModel):
    address_id: Optional[int] = None
    items: List[OrderItemIn] = Field(default_factory=list)
    total_amount: Optional[Decimal] = None

class OrderStatusUpdateIn(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None

class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: UUID
    product_id: UUID
    variant_id: Optional[UUID] = None
    quantity: int
    price_at_purchase: Decimal

class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: int
    address_id: Optional[int] = None
    total_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class OrderWriteOut(BaseModel):
    order_id: UUID
    order: OrderOut
    items: List[OrderItemOut]

# ============================================================================
# Cart / Wishlist / Addresses
# ============================================================================

class CartAddIn(BaseModel):
    variant_id: UUID
    quantity: int = Field(default=1, ge=1)

class CartUpdateIn(BaseModel):
    quantity: int

class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    variant_id: UUID
    quantity: int

class CartLineOut(BaseModel):
    cart_item_id: int
    quantity: int
    variant_id: UUID
    product_id: UUID
    product_name: str
    unit_price: Optional[Decimal] = None
    subtotal: Decimal

class CartOut(BaseModel):
    cart_items: List[CartLineOut]
    grand_total: Decimal
    count: int

class WishlistAddIn(BaseModel):
    variant_id: UUID

class WishlistItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    variant_id: UUID
    created_at: Optional[datetime] = None

class AddressIn(BaseModel):
    address_line_1: str = Field(min_length=1)
    address_line_2: Optional[str] = None
    city: str = Field(min_length=1)
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_default: bool = False

class AddressUpdateIn(BaseModel):
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_default: Optional[bool] = None

class AddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    address_line_1: str
    address_line_2: Optional[str] = None
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    is_default: bool
