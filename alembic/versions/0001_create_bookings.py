from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("job_id", sa.String(), nullable=False),
        sa.Column("worker_id", sa.String(), nullable=False),
        sa.Column("client_id", sa.String(), nullable=False),
        sa.Column("application_message", sa.Text(), nullable=True),
        sa.Column("proposed_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_hours", sa.Integer(), nullable=False),
        sa.Column("questions_responses", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scheduled_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("worker_payout", sa.Numeric(12, 2), nullable=True),
        sa.Column("client_notes", sa.Text(), nullable=True),
        sa.Column("worker_notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("client_satisfaction", sa.Integer(), nullable=True),
        sa.Column("worker_satisfaction", sa.Integer(), nullable=True),
        sa.Column("issues_reported", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("client_satisfaction BETWEEN 1 AND 5", name="ck_bookings_client_satisfaction"),
        sa.CheckConstraint("worker_satisfaction BETWEEN 1 AND 5", name="ck_bookings_worker_satisfaction"),
    )
    op.create_index("ix_bookings_job_id", "bookings", ["job_id"], unique=False)
    op.create_index("ix_bookings_worker_id", "bookings", ["worker_id"], unique=False)
    op.create_index("ix_bookings_client_id", "bookings", ["client_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"], unique=False)
    op.create_index("ix_bookings_applied_at", "bookings", ["applied_at"], unique=False)
    op.create_index("ix_bookings_scheduled_start", "bookings", ["scheduled_start"], unique=False)
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"], unique=False)

def downgrade():
    op.drop_index("ix_bookings_created_at", table_name="bookings")
    op.drop_index("ix_bookings_scheduled_start", table_name="bookings")
    op.drop_index("ix_bookings_applied_at", table_name="bookings")
    op.drop_index("ix_bookings_payment_status", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_client_id", table_name="bookings")
    op.drop_index("ix_bookings_worker_id", table_name="bookings")
    op.drop_index("ix_bookings_job_id", table_name="bookings")
    op.drop_table("bookings")
