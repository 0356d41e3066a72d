"""Create control plane tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Tables: control_state, leads, conversations, messages
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create control plane tables."""
    # Durable copy of pause/suppress records, keyed like the fast store
    op.create_table(
        "control_state",
        sa.Column("namespace", sa.String(64), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", JSONB, nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("namespace", "key", name="pk_control_state"),
    )

    op.create_table(
        "leads",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("stage", sa.String(64), nullable=False, server_default="cold"),
        sa.Column("priority", sa.String(16)),
        sa.Column("broadcast_classification", sa.String(32)),
        sa.Column("last_activity_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint(
            "broadcast_classification IS NULL OR broadcast_classification IN "
            "('hot', 'warm', 'cold', 'bot_autoresponse')",
            name="chk_leads_broadcast_classification",
        ),
    )
    op.create_index("idx_leads_tenant", "leads", ["tenant_id"])
    op.create_index(
        "idx_leads_unclassified",
        "leads",
        ["tenant_id"],
        postgresql_where=sa.text("broadcast_classification IS NULL"),
    )

    op.create_table(
        "conversations",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("lead_id", UUID, sa.ForeignKey("leads.id", ondelete="CASCADE")),
        sa.Column("actor_phone", sa.String(32), nullable=False),
        sa.Column("state", JSONB),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
    )
    op.create_index("idx_conversations_tenant", "conversations", ["tenant_id"])
    op.create_index("idx_conversations_lead", "conversations", ["lead_id", "updated_at"])

    op.create_table(
        "messages",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "conversation_id",
            UUID,
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("sent_by", sa.String(32), nullable=False, server_default="bot"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="chk_messages_role"),
    )
    op.create_index("idx_messages_conversation", "messages", ["conversation_id", "created_at"])


def downgrade() -> None:
    """Drop control plane tables."""
    op.drop_index("idx_messages_conversation", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_conversations_lead", table_name="conversations")
    op.drop_index("idx_conversations_tenant", table_name="conversations")
    op.drop_table("conversations")
    op.drop_index("idx_leads_unclassified", table_name="leads")
    op.drop_index("idx_leads_tenant", table_name="leads")
    op.drop_table("leads")
    op.drop_table("control_state")
