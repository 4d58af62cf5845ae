"""attribute definitions, owners and attribute values

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

# Enum columns store member names
data_type = sa.Enum("STRING", "NUMBER", "BOOLEAN", "ENUM", "DATE", name="datatype")
inheritance_strategy = sa.Enum("NEVER", "FALLBACK", "ALWAYS", name="inheritancestrategy")
applies_to = sa.Enum("PRODUCT", "VARIANT", "BOTH", name="appliesto")
attribute_source = sa.Enum("MANUAL", "INHERITED", "IMPORT", "SYSTEM", name="attributesource")


def upgrade() -> None:
    op.create_table(
        "attribute_definitions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("name", sa.String()),
        sa.Column("description", sa.Text()),
        sa.Column("data_type", data_type, nullable=False),
        sa.Column("enum_values", sa.JSON()),
        sa.Column("validation_rules", sa.JSON()),
        sa.Column("default_value", sa.String(), nullable=True),
        sa.Column("is_inheritable", sa.Boolean()),
        sa.Column("inheritance_strategy", inheritance_strategy),
        sa.Column("applies_to", applies_to),
        sa.Column("sync_to_shopify", sa.Boolean()),
        sa.Column("sync_to_ebay", sa.Boolean()),
        sa.Column("sync_to_mirakl", sa.Boolean()),
        sa.Column("group", sa.String()),
        sa.Column("sort_order", sa.Integer()),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_attribute_definitions_id", "attribute_definitions", ["id"])
    op.create_index("ix_attribute_definitions_key", "attribute_definitions", ["key"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String()),
        sa.Column("sku", sa.String(), nullable=True),
        sa.Column("description", sa.String()),
        sa.Column("is_active", sa.Boolean()),
    )
    op.create_index("ix_products_id", "products", ["id"])
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)

    op.create_table(
        "product_variants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("sku", sa.String()),
        sa.Column("name", sa.String()),
    )
    op.create_index("ix_product_variants_id", "product_variants", ["id"])
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"])
    op.create_index("ix_product_variants_sku", "product_variants", ["sku"], unique=True)

    op.create_table(
        "attribute_values",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=True),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True),
        sa.Column("attribute_definition_id", sa.Integer(), sa.ForeignKey("attribute_definitions.id"), nullable=False),
        sa.Column("raw", sa.Text()),
        sa.Column("previous_raw", sa.Text()),
        sa.Column("is_inherited", sa.Boolean(), nullable=False),
        sa.Column("is_override", sa.Boolean(), nullable=False),
        sa.Column("source", attribute_source, nullable=False),
        sa.Column("inherited_at", sa.DateTime(), nullable=True),
        sa.Column("inherited_from_value_id", sa.Integer(), nullable=True),
        sa.Column("validation_errors", sa.JSON()),
        sa.Column("is_valid", sa.Boolean(), nullable=False),
        sa.Column("last_validated_at", sa.DateTime()),
        sa.Column("value_changed_at", sa.DateTime()),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("sync_status", sa.JSON()),
        sa.Column("last_synced_at", sa.JSON()),
        sa.Column("sync_errors", sa.JSON()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("product_id", "attribute_definition_id", name="uq_attribute_values_product_definition"),
        sa.UniqueConstraint("variant_id", "attribute_definition_id", name="uq_attribute_values_variant_definition"),
        sa.CheckConstraint("(product_id IS NULL) <> (variant_id IS NULL)", name="ck_attribute_values_single_owner"),
        sa.CheckConstraint("NOT (is_inherited AND is_override)", name="ck_attribute_values_inherited_or_override"),
    )
    op.create_index("ix_attribute_values_id", "attribute_values", ["id"])
    op.create_index("ix_attribute_values_product_id", "attribute_values", ["product_id"])
    op.create_index("ix_attribute_values_variant_id", "attribute_values", ["variant_id"])
    op.create_index("ix_attribute_values_attribute_definition_id", "attribute_values", ["attribute_definition_id"])


def downgrade() -> None:
    op.drop_table("attribute_values")
    op.drop_table("product_variants")
    op.drop_table("products")
    op.drop_table("attribute_definitions")
    for enum_type in (attribute_source, applies_to, inheritance_strategy, data_type):
        enum_type.drop(op.get_bind(), checkfirst=True)
