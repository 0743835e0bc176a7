# storefront/services/normalizer.py
"""
Expand one denormalized product (a handle group of sheet rows, or a typed
creation request) into insert-ready payloads:

    product -> metafields
            -> variant -> image (only when an image source is given)
                       -> country prices (always the IN + ALL pair)
                       -> shipping detail

Ids for the product and every variant are generated here, once per call.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from storefront.errors import ValidationFailure
from storefront.services.conversions import (
    clean_text, parse_bool, split_tags, to_decimal, to_int,
)

if TYPE_CHECKING:
    from storefront.models import ProductCreateIn, VariantIn

# (country_code, column suffix in the sheet)
PRICE_MARKETS: Tuple[Tuple[str, str], ...] = (
    ("IN", "India"),
    ("ALL", "all"),
)

DEFAULT_STATUS = "active"

# metafield attribute -> sheet column
METAFIELD_COLUMNS = {
    "color": "Color (product.metafields.shopify.color-pattern)",
    "fabric": "Fabric (product.metafields.shopify.fabric)",
    "size": "Size (product.metafields.shopify.size)",
    "occasion": "Dress occasion (product.metafields.shopify.dress-occasion)",
    "sleeve_length": "Sleeve length type (product.metafields.shopify.sleeve-length-type)",
    "target_gender": "Target gender (product.metafields.shopify.target-gender)",
}


@dataclass
class VariantBundle:
    variant: Dict[str, Any]
    prices: List[Dict[str, Any]]
    shipping: Dict[str, Any]
    image: Optional[Dict[str, Any]] = None

    @property
    def variant_id(self) -> uuid.UUID:
        return self.variant["id"]

    @property
    def sku(self) -> Optional[str]:
        return self.variant.get("sku")


@dataclass
class ProductBundle:
    handle: str
    product: Dict[str, Any]
    metafields: Optional[Dict[str, Any]] = None
    variants: List[VariantBundle] = field(default_factory=list)

    @property
    def product_id(self) -> uuid.UUID:
        return self.product["id"]


# ============================================================================
# Sheet rows -> bundle
# ============================================================================

def normalize_group(handle: str, rows: Sequence[Mapping[str, Any]]) -> ProductBundle:
    """Build one product bundle from the rows grouped under ``handle``."""
    if not rows:
        raise ValidationFailure(f"No rows for handle '{handle}'", entity=handle)

    first = rows[0]
    title = clean_text(first.get("Title"))
    if title is None:
        raise ValidationFailure(f"Missing Title for handle '{handle}'", entity=handle)

    product_id = uuid.uuid4()
    product = {
        "id": product_id,
        "handle": handle,
        "title": title,
        "body_html": clean_text(first.get("Body (HTML)")),
        "vendor": clean_text(first.get("Vendor")),
        "product_category": clean_text(first.get("Product Category")),
        "product_type": clean_text(first.get("Type")),
        "tags": split_tags(first.get("Tags")),
        "published": parse_bool(first.get("Published")),
        "status": clean_text(first.get("Status")) or DEFAULT_STATUS,
        "seo_title": clean_text(first.get("SEO Title")),
        "seo_description": clean_text(first.get("SEO Description")),
        "is_gift_card": parse_bool(first.get("Gift Card")),
    }

    attributes = {
        name: clean_text(first.get(column))
        for name, column in METAFIELD_COLUMNS.items()
    }
    metafields = {
        "product_id": product_id,
        "attributes": {k: v for k, v in attributes.items() if v is not None},
    }

    bundle = ProductBundle(handle=handle, product=product, metafields=metafields)
    for row in rows:
        try:
            bundle.variants.append(_variant_from_row(product_id, row))
        except ValidationFailure as e:
            raise ValidationFailure(f"{handle}: {e.message}", entity=handle) from e
    return bundle


def _number(row: Mapping[str, Any], column: str, convert: Callable[[Any], Any]) -> Any:
    try:
        return convert(row.get(column))
    except ValidationFailure as e:
        sku = clean_text(row.get("Variant SKU")) or "?"
        raise ValidationFailure(f"{column} (sku {sku}): {e.message}") from e


def _variant_from_row(product_id: uuid.UUID, row: Mapping[str, Any]) -> VariantBundle:
    variant_id = uuid.uuid4()
    variant = {
        "id": variant_id,
        "product_id": product_id,
        "sku": clean_text(row.get("Variant SKU")),
        "barcode": clean_text(row.get("Variant Barcode")),
        "option1_name": clean_text(row.get("Option1 Name")),
        "option1_value": clean_text(row.get("Option1 Value")),
        "option2_name": clean_text(row.get("Option2 Name")),
        "option2_value": clean_text(row.get("Option2 Value")),
        "option3_name": clean_text(row.get("Option3 Name")),
        "option3_value": clean_text(row.get("Option3 Value")),
        "price": _number(row, "Variant Price", to_decimal),
        "compare_at_price": _number(row, "Variant Compare At Price", to_decimal),
        "cost_per_item": _number(row, "Cost per item", to_decimal),
        # no default here: an empty sheet cell stays NULL
        "inventory_qty": _number(row, "Variant Inventory Qty", to_int),
        "inventory_policy": clean_text(row.get("Variant Inventory Policy")),
        "inventory_tracker": clean_text(row.get("Variant Inventory Tracker")),
        "requires_shipping": parse_bool(row.get("Variant Requires Shipping")),
        "taxable": parse_bool(row.get("Variant Taxable")),
        "weight": _number(row, "Variant Grams", to_decimal),
        "weight_unit": clean_text(row.get("Variant Weight Unit")),
    }

    image = None
    image_src = clean_text(row.get("Image Src"))
    if image_src:
        image = {
            "product_id": product_id,
            "variant_id": variant_id,
            "image_src": image_src,
            "image_position": _number(row, "Image Position", to_int),
            "image_alt_text": clean_text(row.get("Image Alt Text")),
        }

    prices = [
        {
            "variant_id": variant_id,
            "country_code": code,
            "included": parse_bool(row.get(f"Included / {suffix}")),
            "price": _number(row, f"Price / {suffix}", to_decimal),
            "compare_at_price": _number(row, f"Compare At Price / {suffix}", to_decimal),
        }
        for code, suffix in PRICE_MARKETS
    ]

    shipping = {
        "variant_id": variant_id,
        "length_cm": _number(row, "Length (cm)", to_decimal),
        "width_cm": _number(row, "Width (cm)", to_decimal),
        "height_cm": _number(row, "Height (cm)", to_decimal),
    }

    return VariantBundle(variant=variant, prices=prices, shipping=shipping, image=image)


# ============================================================================
# Typed request -> bundle
# ============================================================================

def bundle_from_request(payload: "ProductCreateIn") -> ProductBundle:
    """Build a bundle from a validated product-with-variants request."""
    handle = (payload.handle or "").strip()
    title = (payload.title or "").strip()
    if not handle:
        raise ValidationFailure("handle is required")
    if not title:
        raise ValidationFailure("title is required", entity=handle)

    product_id = uuid.uuid4()
    product = {
        "id": product_id,
        "handle": handle,
        "title": title,
        "body_html": payload.body_html,
        "vendor": payload.vendor,
        "product_category": payload.product_category,
        "product_type": payload.product_type,
        "tags": list(payload.tags),
        "published": payload.published,
        "status": payload.status or DEFAULT_STATUS,
        "seo_title": payload.seo_title,
        "seo_description": payload.seo_description,
        "is_gift_card": payload.is_gift_card,
        "category_id": payload.category_id,
        "subcategory_id": payload.subcategory_id,
        "product_type_id": payload.product_type_id,
    }

    metafields = None
    if payload.metafields:
        metafields = {"product_id": product_id, "attributes": dict(payload.metafields)}

    bundle = ProductBundle(handle=handle, product=product, metafields=metafields)
    for item in payload.variants:
        bundle.variants.append(_variant_from_request(product_id, item))
    return bundle


def _variant_from_request(product_id: uuid.UUID, item: "VariantIn") -> VariantBundle:
    variant_id = uuid.uuid4()
    variant = item.model_dump(
        include={
            "sku", "barcode",
            "option1_name", "option1_value",
            "option2_name", "option2_value",
            "option3_name", "option3_value",
            "price", "compare_at_price", "cost_per_item",
            "inventory_policy", "inventory_tracker",
            "requires_shipping", "taxable", "weight", "weight_unit",
        }
    )
    variant["sku"] = clean_text(variant.get("sku"))
    variant.update(
        id=variant_id,
        product_id=product_id,
        inventory_qty=item.inventory_qty if item.inventory_qty is not None else 0,
    )

    image = None
    image_src = clean_text(item.image_src)
    if image_src:
        image = {
            "product_id": product_id,
            "variant_id": variant_id,
            "image_src": image_src,
            "image_position": item.image_position,
            "image_alt_text": item.image_alt_text,
        }

    prices = []
    for code, _ in PRICE_MARKETS:
        market = item.country_prices.get(code)
        prices.append({
            "variant_id": variant_id,
            "country_code": code,
            "included": market.included if market else False,
            "price": market.price if market else None,
            "compare_at_price": market.compare_at_price if market else None,
        })

    shipping = {
        "variant_id": variant_id,
        "length_cm": item.length_cm,
        "width_cm": item.width_cm,
        "height_cm": item.height_cm,
    }

    return VariantBundle(variant=variant, prices=prices, shipping=shipping, image=image)
