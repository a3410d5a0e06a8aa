"""initial schema: users, audit events, catalog and styling tables

Revision ID: 4d2e6a1b7c90
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4d2e6a1b7c90'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _fk(name: str, target: str, *, nullable: bool, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(name, sa.String(36), sa.ForeignKey(f"{target}.id", ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    """Create every table the console manages."""
    # Check if tables already exist (idempotent)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("actor_user_email", sa.String(320), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("reason", sa.String(512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )

    # Catalog
    if "vendors" not in existing_tables:
        op.create_table(
            "vendors",
            _id(),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("website_url", sa.String(512), nullable=True),
            sa.Column("contact_name", sa.String(255), nullable=True),
            sa.Column("contact_email", sa.String(320), nullable=True),
            sa.Column("contact_phone", sa.String(64), nullable=True),
            sa.Column("wholesale", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_vendors_name", "vendors", ["name"])

    if "products" not in existing_tables:
        op.create_table(
            "products",
            _id(),
            _fk("vendor_id", "vendors", nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(128), nullable=True),
            sa.Column("subcategory", sa.String(128), nullable=True),
            sa.Column("target_gender", sa.String(16), nullable=True),
            sa.Column("material", sa.String(255), nullable=True),
            sa.Column("care", sa.String(255), nullable=True),
            sa.Column("base_color", sa.String(64), nullable=True),
            sa.Column("msrp", sa.Numeric(12, 2), nullable=True),
            sa.Column("currency", sa.String(8), nullable=True),
            sa.Column("external_handle", sa.String(255), nullable=True),
            sa.Column("search_tags", sa.JSON(), nullable=False),
            *_timestamps(),
        )
        op.create_index("idx_products_vendor", "products", ["vendor_id"])
        op.create_index("idx_products_name", "products", ["name"])

    if "product_variants" not in existing_tables:
        op.create_table(
            "product_variants",
            _id(),
            _fk("product_id", "products", nullable=False),
            sa.Column("sku", sa.String(128), nullable=True),
            sa.Column("barcode", sa.String(128), nullable=True),
            sa.Column("size_system", sa.String(16), nullable=True),
            sa.Column("size_label", sa.String(64), nullable=True),
            sa.Column("numeric_size", sa.Numeric(8, 2), nullable=True),
            sa.Column("color", sa.String(64), nullable=True),
            sa.Column("length_label", sa.String(64), nullable=True),
            sa.Column("rise_label", sa.String(64), nullable=True),
            sa.Column("fit_notes", sa.Text(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )
        op.create_index("idx_product_variants_product", "product_variants", ["product_id"])

    if "inventory" not in existing_tables:
        op.create_table(
            "inventory",
            _id(),
            _fk("variant_id", "product_variants", nullable=False),
            _fk("vendor_id", "vendors", nullable=True, ondelete="SET NULL"),
            sa.Column("quantity_on_hand", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("cost", sa.Numeric(12, 2), nullable=True),
            sa.Column("price", sa.Numeric(12, 2), nullable=True),
            sa.Column("currency", sa.String(8), nullable=True),
            sa.Column("location", sa.String(255), nullable=True),
            sa.Column("last_synced_at", sa.DateTime(), nullable=True),
        )
        op.create_index("idx_inventory_variant", "inventory", ["variant_id"])

    if "media_assets" not in existing_tables:
        op.create_table(
            "media_assets",
            _id(),
            _fk("product_id", "products", nullable=True),
            _fk("variant_id", "product_variants", nullable=True),
            sa.Column("kind", sa.String(16), nullable=False, server_default="image"),
            sa.Column("url", sa.String(1024), nullable=False),
            sa.Column("alt", sa.String(512), nullable=True),
            sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("position", sa.Integer(), nullable=True),
        )
        op.create_index("idx_media_assets_product", "media_assets", ["product_id"])
        op.create_index("idx_media_assets_variant", "media_assets", ["variant_id"])

    # Styling
    if "personas" not in existing_tables:
        op.create_table(
            "personas",
            _id(),
            sa.Column("user_id", sa.String(36), nullable=True),
            sa.Column("display_name", sa.String(255), nullable=False),
            sa.Column("birth_date", sa.Date(), nullable=True),
            sa.Column("coloring", sa.String(16), nullable=True, server_default="unknown"),
            sa.Column("undertone", sa.String(16), nullable=True, server_default="unknown"),
            sa.Column("eye_color", sa.String(64), nullable=True),
            sa.Column("hair_color", sa.String(64), nullable=True),
            sa.Column("skin_tone", sa.String(64), nullable=True),
            sa.Column("body_shape", sa.String(64), nullable=True),
            sa.Column("style_keywords", sa.JSON(), nullable=False),
            sa.Column("brand_prefs", sa.JSON(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_personas_display_name", "personas", ["display_name"])

    if "persona_measurements" not in existing_tables:
        op.create_table(
            "persona_measurements",
            _id(),
            _fk("persona_id", "personas", nullable=False),
            sa.Column("name", sa.String(128), nullable=False),
            sa.Column("value_cm", sa.Numeric(8, 2), nullable=False),
            sa.Column("taken_on", sa.Date(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
        )
        op.create_index("idx_persona_measurements_persona", "persona_measurements", ["persona_id"])

    if "persona_preferences" not in existing_tables:
        op.create_table(
            "persona_preferences",
            _id(),
            _fk("persona_id", "personas", nullable=False),
            sa.Column("pref_key", sa.String(128), nullable=False),
            sa.Column("pref_value", sa.JSON(), nullable=False),
            sa.Column("priority", sa.Integer(), nullable=True),
        )
        op.create_index("idx_persona_preferences_persona", "persona_preferences", ["persona_id"])

    if "wardrobes" not in existing_tables:
        op.create_table(
            "wardrobes",
            _id(),
            _fk("persona_id", "personas", nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_wardrobes_persona", "wardrobes", ["persona_id"])

    if "wardrobe_items" not in existing_tables:
        op.create_table(
            "wardrobe_items",
            _id(),
            _fk("wardrobe_id", "wardrobes", nullable=False),
            _fk("product_id", "products", nullable=True, ondelete="SET NULL"),
            _fk("variant_id", "product_variants", nullable=True, ondelete="SET NULL"),
            sa.Column("status", sa.String(16), nullable=False, server_default="owned"),
            sa.Column("acquired_on", sa.Date(), nullable=True),
            sa.Column("purchase_price", sa.Numeric(12, 2), nullable=True),
            sa.Column("currency", sa.String(8), nullable=True),
            sa.Column("condition", sa.String(64), nullable=True),
            sa.Column("fit_rating", sa.Integer(), nullable=True),
            sa.Column("tailor_notes", sa.Text(), nullable=True),
            sa.Column("style_tags", sa.JSON(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_wardrobe_items_wardrobe", "wardrobe_items", ["wardrobe_id"])
        op.create_index("idx_wardrobe_items_status", "wardrobe_items", ["status"])

    if "outfits" not in existing_tables:
        op.create_table(
            "outfits",
            _id(),
            _fk("persona_id", "personas", nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_outfits_persona", "outfits", ["persona_id"])

    if "outfit_items" not in existing_tables:
        op.create_table(
            "outfit_items",
            _id(),
            _fk("outfit_id", "outfits", nullable=False),
            _fk("wardrobe_item_id", "wardrobe_items", nullable=False),
            sa.Column("role", sa.String(64), nullable=True),
            sa.Column("position", sa.Integer(), nullable=True),
        )
        op.create_index("idx_outfit_items_outfit", "outfit_items", ["outfit_id"])


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    for table in (
        "outfit_items",
        "outfits",
        "wardrobe_items",
        "wardrobes",
        "persona_preferences",
        "persona_measurements",
        "personas",
        "media_assets",
        "inventory",
        "product_variants",
        "products",
        "vendors",
        "audit_events",
        "users",
    ):
        op.drop_table(table)
