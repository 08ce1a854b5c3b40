"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all initial tables."""

    # Organizations
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        *_timestamps(),
    )

    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "advisor", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    # Products
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("default_fee_rate", sa.Numeric(6, 4), nullable=False, server_default="0"),
        sa.Column("commission_organization_initial", sa.Numeric(6, 4), nullable=False, server_default="0"),
        sa.Column("commission_organization_monthly", sa.Numeric(6, 4), nullable=False, server_default="0"),
        sa.Column("commission_advisor_initial", sa.Numeric(6, 4), nullable=False, server_default="0"),
        sa.Column("commission_advisor_monthly", sa.Numeric(6, 4), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_products_organization_id", "products", ["organization_id"])

    # Pipeline stages
    op.create_table(
        "pipeline_stages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_won", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_lost", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("organization_id", "slug", name="uq_pipeline_stages_org_slug"),
    )
    op.create_index("ix_pipeline_stages_organization_id", "pipeline_stages", ["organization_id"])

    # Prospects
    op.create_table(
        "crm_prospects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("stage_slug", sa.String(50), nullable=False, server_default="nouveau"),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_crm_prospects_organization_id", "crm_prospects", ["organization_id"])
    op.create_index("ix_crm_prospects_stage_slug", "crm_prospects", ["stage_slug"])

    # Sales
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("prospect_id", sa.Integer(), sa.ForeignKey("crm_prospects.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("advisor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("initial_contribution", sa.Numeric(12, 2), nullable=False),
        sa.Column("monthly_contribution", sa.Numeric(12, 2), nullable=False),
        sa.Column("fee_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("fee_basis", sa.Enum("initial", "mensuel", "both", name="feebasis"), nullable=True),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("idempotency_key", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "organization_id",
            "prospect_id",
            "idempotency_key",
            name="uq_sales_prospect_idempotency_key",
        ),
    )
    op.create_index("ix_sales_organization_id", "sales", ["organization_id"])
    op.create_index("ix_sales_prospect_id", "sales", ["prospect_id"])
    op.create_index("ix_sales_advisor_id", "sales", ["advisor_id"])

    # Commission records
    op.create_table(
        "advisor_commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("advisor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("role", sa.Enum("organization", "advisor", name="beneficiaryrole"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("rate_initial", sa.Numeric(6, 4), nullable=False),
        sa.Column("rate_monthly", sa.Numeric(6, 4), nullable=False),
        sa.Column("gross_base", sa.Numeric(14, 2), nullable=False),
        sa.Column("fee_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_advisor_commissions_organization_id", "advisor_commissions", ["organization_id"])
    op.create_index("ix_advisor_commissions_advisor_id", "advisor_commissions", ["advisor_id"])
    op.create_index("ix_advisor_commissions_sale_id", "advisor_commissions", ["sale_id"])
    op.create_index("ix_advisor_commissions_created_at", "advisor_commissions", ["created_at"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum("record_sale", "correct_sale", "delete_commission", name="auditaction"),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_organization_id", "audit_logs", ["organization_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("advisor_commissions")
    op.drop_table("sales")
    op.drop_table("crm_prospects")
    op.drop_table("pipeline_stages")
    op.drop_table("products")
    op.drop_table("users")
    op.drop_table("organizations")

    for enum_name in ("auditaction", "beneficiaryrole", "feebasis", "userrole"):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
