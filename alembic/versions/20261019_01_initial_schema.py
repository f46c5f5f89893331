"""Accounts, shops and catalog schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP"))


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("avatar_url", sa.String(length=512)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("username", name="accounts_username_key"),
        sa.UniqueConstraint("email", name="accounts_email_key"),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=32), nullable=False, unique=True),
    )
    op.create_table(
        "account_roles",
        sa.Column(
            "account_id",
            sa.String(length=36),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), primary_key=True),
    )
    op.create_table(
        "addresses",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(length=36),
            sa.ForeignKey("accounts.id", name="addresses_account_id_fkey", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", sa.String(length=64), nullable=False),
        sa.Column("recipient_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("street", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=128), nullable=False),
        sa.Column("postal_code", sa.String(length=16), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.text("FALSE")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_addresses_account_id", "addresses", ["account_id"])
    op.create_table(
        "shops",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("logo_url", sa.String(length=512)),
        _timestamp("created_at"),
        sa.UniqueConstraint("account_id", name="shops_account_id_key"),
        sa.UniqueConstraint("name", name="shops_name_key"),
    )
    op.create_table(
        "product_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("name", name="product_categories_name_key"),
    )
    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("logo_url", sa.String(length=512)),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("name", name="brands_name_key"),
    )
    op.create_table(
        "product_conditions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text()),
        sa.UniqueConstraint("name", name="product_conditions_name_key"),
    )
    op.create_table(
        "product_sizes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("value", sa.String(length=32), nullable=False),
        sa.UniqueConstraint("value", name="product_sizes_value_key"),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "shop_id", sa.String(length=36), sa.ForeignKey("shops.id", name="products_shop_id_fkey"), nullable=False
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("product_categories.id", name="products_category_id_fkey"),
            nullable=False,
        ),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", name="products_brand_id_fkey")),
        sa.Column(
            "condition_id",
            sa.Integer(),
            sa.ForeignKey("product_conditions.id", name="products_condition_id_fkey"),
        ),
        sa.Column("size_id", sa.Integer(), sa.ForeignKey("product_sizes.id", name="products_size_id_fkey")),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("thumbnail_url", sa.String(length=512)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("TRUE")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_products_shop_created", "products", ["shop_id", "created_at"])
    op.create_table(
        "product_images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "product_id",
            sa.String(length=36),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("url", sa.String(length=512), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_index("ix_product_images_product_id", "product_images", ["product_id"])

    roles = sa.table("roles", sa.column("name", sa.String))
    op.bulk_insert(roles, [{"name": "customer"}, {"name": "seller"}, {"name": "admin"}])


def downgrade() -> None:
    op.drop_index("ix_product_images_product_id", table_name="product_images")
    op.drop_table("product_images")
    op.drop_index("ix_products_shop_created", table_name="products")
    op.drop_table("products")
    op.drop_table("product_sizes")
    op.drop_table("product_conditions")
    op.drop_table("brands")
    op.drop_table("product_categories")
    op.drop_table("shops")
    op.drop_index("ix_addresses_account_id", table_name="addresses")
    op.drop_table("addresses")
    op.drop_table("account_roles")
    op.drop_table("roles")
    op.drop_table("accounts")
