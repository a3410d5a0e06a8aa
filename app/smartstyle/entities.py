"""
Entity declarations for the styling console.

Each manageable collection is declared once here and registered in `registry`.
The crud engine renders whatever is registered; adding a screen means adding a
schema, not changing the engine.
"""
from __future__ import annotations

import json

from app.smartstyle.crud.formatters import embedded, money, yes_no
from app.smartstyle.crud.schema import (
    EntityRegistry,
    EntitySchema,
    FieldDescriptor as F,
    FieldKind as K,
    FkReference,
    Ordering,
    options_from,
)

TARGET_GENDERS = ("womens", "mens", "unisex", "kids", "unknown")
COLORING_PALETTES = ("spring", "summer", "autumn", "winter", "neutral", "unknown")
SKIN_UNDERTONES = ("cool", "warm", "neutral", "unknown")
ITEM_STATUS = ("owned", "wishlist", "donated", "returned", "tailor", "archived")
SIZE_SYSTEMS = ("us", "uk", "eu", "jp", "alpha", "custom")
MEDIA_KINDS = ("image", "video", "url")

VENDOR_REF = FkReference(table="vendors", value_key="id", label_key="name", order_by="name")
PRODUCT_REF = FkReference(table="products", value_key="id", label_key="name", order_by="name")
VARIANT_REF = FkReference(table="product_variants", value_key="id", label_key="size_label", order_by="size_label")
PERSONA_REF = FkReference(table="personas", value_key="id", label_key="display_name", order_by="display_name")

registry = EntityRegistry()


def _normalize_vendor(payload: dict, is_update: bool) -> dict:
    email = payload.get("contact_email")
    if isinstance(email, str):
        payload = {**payload, "contact_email": email.strip().lower() or None}
    return payload


def _parse_pref_value(payload: dict, is_update: bool) -> dict:
    """Store valid JSON as structured data; anything else is kept as a string."""
    raw = payload.get("pref_value")
    if not isinstance(raw, str):
        return payload
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return {**payload, "pref_value": value}


VENDORS = registry.register(
    EntitySchema(
        title="Vendors",
        subtitle="Brands, boutiques, suppliers",
        collection="vendors",
        ordering=Ordering("name"),
        fields=(
            F("name", "Name", K.TEXT, required=True),
            F("website_url", "Website", K.TEXT),
            F("contact_name", "Contact Name", K.TEXT),
            F("contact_email", "Contact Email", K.TEXT),
            F("contact_phone", "Contact Phone", K.TEXT),
            F("wholesale", "Wholesale", K.CHECKBOX, default=False, list_formatter=yes_no),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("name", "contact_name", "contact_email", "website_url"),
        list_columns=("name", "website_url", "contact_name", "wholesale"),
        before_save=_normalize_vendor,
    )
)

PRODUCTS = registry.register(
    EntitySchema(
        title="Products",
        subtitle="Create and update product styles (variants managed elsewhere)",
        collection="products",
        list_projection="*, vendors(name)",
        ordering=Ordering("created_at", ascending=False),
        page_limit=200,
        fields=(
            F("vendor_id", "Vendor", K.FK, required=True, reference=VENDOR_REF, list_formatter=embedded("vendors", "name")),
            F("name", "Product Name", K.TEXT, required=True),
            F("category", "Category", K.TEXT),
            F("subcategory", "Subcategory", K.TEXT),
            F("target_gender", "Target Gender", K.SELECT, options=options_from(TARGET_GENDERS)),
            F("base_color", "Base Color", K.TEXT),
            F("material", "Material", K.TEXT),
            F("care", "Care", K.TEXT),
            F("msrp", "MSRP", K.MONEY, list_formatter=money()),
            F("currency", "Currency", K.TEXT, default="USD"),
            F("external_handle", "External Handle", K.TEXT),
            F("search_tags", "Search Tags", K.TAGS, hidden_in_list=True),
            F("description", "Description", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("name", "category", "subcategory", "base_color"),
        list_columns=("name", "vendor_id", "category", "target_gender", "base_color", "msrp"),
    )
)

PERSONAS = registry.register(
    EntitySchema(
        title="Personas",
        subtitle="Clients you style",
        collection="personas",
        ordering=Ordering("display_name"),
        fields=(
            F("user_id", "User ID", K.TEXT, hidden_in_list=True),
            F("display_name", "Display Name", K.TEXT, required=True),
            F("birth_date", "Birth Date", K.DATE),
            F("coloring", "Coloring", K.SELECT, options=options_from(COLORING_PALETTES), default="unknown"),
            F("undertone", "Undertone", K.SELECT, options=options_from(SKIN_UNDERTONES), default="unknown"),
            F("eye_color", "Eye Color", K.TEXT),
            F("hair_color", "Hair Color", K.TEXT),
            F("skin_tone", "Skin Tone", K.TEXT),
            F("body_shape", "Body Shape", K.TEXT),
            F("style_keywords", "Style Keywords", K.TAGS),
            F("brand_prefs", "Brand Preferences", K.TAGS),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("display_name", "eye_color", "hair_color", "skin_tone", "body_shape"),
        list_columns=("display_name", "coloring", "undertone", "body_shape"),
    )
)

OUTFITS = registry.register(
    EntitySchema(
        title="Outfits",
        subtitle="Compose looks for a persona (attach wardrobe items separately)",
        collection="outfits",
        list_projection="*, personas(display_name)",
        ordering=Ordering("created_at", ascending=False),
        page_limit=200,
        fields=(
            F("persona_id", "Persona", K.FK, required=True, reference=PERSONA_REF,
              list_formatter=embedded("personas", "display_name")),
            F("title", "Title", K.TEXT, required=True),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("title",),
        list_columns=("title", "persona_id"),
    )
)

WARDROBE_ITEMS = registry.register(
    EntitySchema(
        title="Wardrobe Items",
        subtitle="Individual items in wardrobes",
        collection="wardrobe_items",
        list_projection="*, wardrobes(title), products(name), product_variants(size_label, color)",
        ordering=Ordering("created_at", ascending=False),
        page_limit=200,
        fields=(
            F("wardrobe_id", "Wardrobe", K.FK, required=True,
              reference=FkReference(table="wardrobes", value_key="id", label_key="title", order_by="title"),
              list_formatter=embedded("wardrobes", "title")),
            F("product_id", "Product", K.FK, reference=PRODUCT_REF, list_formatter=embedded("products", "name")),
            F("variant_id", "Product Variant", K.FK, reference=VARIANT_REF,
              list_formatter=embedded("product_variants", "size_label", "color")),
            F("status", "Status", K.SELECT, options=options_from(ITEM_STATUS), default="owned"),
            F("acquired_on", "Acquired On", K.DATE),
            F("purchase_price", "Purchase Price", K.MONEY, list_formatter=money()),
            F("currency", "Currency", K.TEXT, default="USD"),
            F("condition", "Condition", K.TEXT),
            F("fit_rating", "Fit Rating (1-5)", K.NUMBER),
            F("tailor_notes", "Tailor Notes", K.TEXTAREA, hidden_in_list=True),
            F("style_tags", "Style Tags", K.TAGS),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("style_tags", "notes", "condition"),
        list_columns=("wardrobe_id", "product_id", "variant_id", "status", "purchase_price", "fit_rating"),
    )
)

PERSONA_MEASUREMENTS = registry.register(
    EntitySchema(
        title="Persona Measurements",
        subtitle="Measurements for personas",
        collection="persona_measurements",
        list_projection="*, personas(display_name)",
        ordering=Ordering("name"),
        fields=(
            F("persona_id", "Persona", K.FK, required=True, reference=PERSONA_REF,
              list_formatter=embedded("personas", "display_name")),
            F("name", "Measurement Name", K.TEXT, required=True),
            F("value_cm", "Value (cm)", K.NUMBER, required=True),
            F("taken_on", "Taken On", K.DATE),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("name",),
        list_columns=("persona_id", "name", "value_cm", "taken_on"),
    )
)

PERSONA_PREFERENCES = registry.register(
    EntitySchema(
        title="Persona Preferences",
        subtitle="Preferences for personas",
        collection="persona_preferences",
        list_projection="*, personas(display_name)",
        ordering=Ordering("priority", ascending=False),
        fields=(
            F("persona_id", "Persona", K.FK, required=True, reference=PERSONA_REF,
              list_formatter=embedded("personas", "display_name")),
            F("pref_key", "Preference Key", K.TEXT, required=True),
            F("pref_value", "Preference Value (JSON)", K.TEXTAREA, required=True, json_value=True),
            F("priority", "Priority", K.NUMBER, default=0),
        ),
        search_keys=("pref_key",),
        list_columns=("persona_id", "pref_key", "priority"),
        before_save=_parse_pref_value,
    )
)

PRODUCT_VARIANTS = registry.register(
    EntitySchema(
        title="Product Variants",
        subtitle="Size/color variations of products",
        collection="product_variants",
        list_projection="*, products(name)",
        ordering=Ordering("created_at", ascending=False),
        page_limit=200,
        fields=(
            F("product_id", "Product", K.FK, required=True, reference=PRODUCT_REF,
              list_formatter=embedded("products", "name")),
            F("sku", "SKU", K.TEXT),
            F("barcode", "Barcode", K.TEXT),
            F("size_system", "Size System", K.SELECT, options=options_from(SIZE_SYSTEMS), default="custom"),
            F("size_label", "Size Label", K.TEXT),
            F("numeric_size", "Numeric Size", K.NUMBER),
            F("color", "Color", K.TEXT),
            F("length_label", "Length Label", K.TEXT),
            F("rise_label", "Rise Label", K.TEXT),
            F("fit_notes", "Fit Notes", K.TEXTAREA, hidden_in_list=True),
            F("active", "Active", K.CHECKBOX, default=True, list_formatter=yes_no),
        ),
        search_keys=("sku", "barcode", "size_label", "color"),
        list_columns=("product_id", "sku", "size_label", "color", "active"),
    )
)

INVENTORY = registry.register(
    EntitySchema(
        title="Inventory",
        subtitle="Stock levels and pricing",
        collection="inventory",
        list_projection="*, product_variants(size_label, color), vendors(name)",
        ordering=Ordering("last_synced_at", ascending=False),
        page_limit=200,
        fields=(
            F("variant_id", "Product Variant", K.FK, required=True, reference=VARIANT_REF,
              list_formatter=embedded("product_variants", "size_label", "color")),
            F("vendor_id", "Vendor", K.FK, reference=VENDOR_REF, list_formatter=embedded("vendors", "name")),
            F("quantity_on_hand", "Quantity On Hand", K.NUMBER, required=True, default=0),
            F("cost", "Cost", K.MONEY, list_formatter=money()),
            F("price", "Price", K.MONEY, list_formatter=money()),
            F("currency", "Currency", K.TEXT, default="USD"),
            F("location", "Location", K.TEXT),
            F("last_synced_at", "Last Synced", K.TEXT, hidden_in_list=True),
        ),
        search_keys=("location",),
        list_columns=("variant_id", "vendor_id", "quantity_on_hand", "cost", "price", "location"),
    )
)

MEDIA_ASSETS = registry.register(
    EntitySchema(
        title="Media Assets",
        subtitle="Images, videos, and links for products",
        collection="media_assets",
        list_projection="*, products(name), product_variants(size_label, color)",
        ordering=Ordering("position"),
        fields=(
            F("product_id", "Product", K.FK, reference=PRODUCT_REF, list_formatter=embedded("products", "name")),
            F("variant_id", "Product Variant", K.FK, reference=VARIANT_REF,
              list_formatter=embedded("product_variants", "size_label", "color")),
            F("kind", "Media Type", K.SELECT, options=options_from(MEDIA_KINDS), required=True, default="image"),
            F("url", "URL", K.TEXT, required=True),
            F("alt", "Alt Text", K.TEXT),
            F("is_primary", "Is Primary", K.CHECKBOX, default=False, list_formatter=yes_no),
            F("position", "Position", K.NUMBER, default=0),
        ),
        search_keys=("url", "alt"),
        list_columns=("product_id", "variant_id", "kind", "url", "is_primary", "position"),
    )
)

WARDROBES = registry.register(
    EntitySchema(
        title="Wardrobes",
        subtitle="Collections of items for personas",
        collection="wardrobes",
        list_projection="*, personas(display_name)",
        ordering=Ordering("title"),
        fields=(
            F("persona_id", "Persona", K.FK, required=True, reference=PERSONA_REF,
              list_formatter=embedded("personas", "display_name")),
            F("title", "Title", K.TEXT, required=True),
            F("is_active", "Is Active", K.CHECKBOX, default=True, list_formatter=yes_no),
            F("notes", "Notes", K.TEXTAREA, hidden_in_list=True),
        ),
        search_keys=("title",),
        list_columns=("persona_id", "title", "is_active"),
    )
)

OUTFIT_ITEMS = registry.register(
    EntitySchema(
        title="Outfit Items",
        subtitle="Items within outfits",
        collection="outfit_items",
        list_projection="*, outfits(title), wardrobe_items(id)",
        ordering=Ordering("position"),
        fields=(
            F("outfit_id", "Outfit", K.FK, required=True,
              reference=FkReference(table="outfits", value_key="id", label_key="title", order_by="title"),
              list_formatter=embedded("outfits", "title")),
            F("wardrobe_item_id", "Wardrobe Item", K.FK, required=True,
              reference=FkReference(table="wardrobe_items", value_key="id", label_key="id", order_by="created_at")),
            F("role", "Role", K.TEXT),
            F("position", "Position", K.NUMBER, default=0),
        ),
        search_keys=("role",),
        list_columns=("outfit_id", "wardrobe_item_id", "role", "position"),
    )
)
