"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    user_role = sa.Enum("user", "agent", "admin", name="user_role")
    property_type = sa.Enum("House", "Apartment", "Condo", name="property_type")
    listing_status = sa.Enum("For Sale", "For Rent", name="listing_status")
    for enum in (user_role, property_type, listing_status):
        enum.create(op.get_bind(), checkfirst=True)

    # Accounts; written by the authentication service, read here for owner summaries
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("role", user_role, nullable=False),
    )

    op.create_table(
        "properties",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("city", sa.String(128), nullable=False),
        sa.Column("state", sa.String(128), nullable=False),
        sa.Column("zip_code", sa.String(32), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("sqft", sa.Integer(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("property_type", property_type, nullable=False),
        sa.Column("status", listing_status, nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        # Ordered image locators
        sa.Column("images", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_available_created", "properties", ["is_available", "created_at"])
    op.create_index("ix_properties_type_status", "properties", ["property_type", "status"])
    op.create_index("ix_properties_price", "properties", ["price"])


def downgrade() -> None:
    op.drop_table("properties")
    op.drop_table("users")
    for name in ("listing_status", "property_type", "user_role"):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
