"""Create jobs, admin audit and player position tables

Revision ID: a1f3c9d2e7b4
Revises:
Create Date: 2026-09-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1f3c9d2e7b4'
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_CLAUSE = "claimed_at IS NULL AND cancelled_at IS NULL"


def upgrade():
    op.create_table('jobs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('owner_id', sa.String(64), nullable=False),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column('subject_ref', sa.String(128), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=False),
        sa.Column('started_at', sa.Integer(), nullable=False),
        sa.Column('finish_at', sa.Integer(), nullable=False),
        sa.Column('requires_location_gate', sa.Boolean(), nullable=False),
        sa.Column('paused_at', sa.Integer(), nullable=True),
        sa.Column('accumulated_pause_seconds', sa.Integer(), nullable=False),
        sa.Column('claimed_at', sa.Integer(), nullable=True),
        sa.Column('claim_result', sa.JSON(), nullable=True),
        sa.Column('cancelled_at', sa.Integer(), nullable=True),
        sa.Column('cancel_reason', sa.String(32), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_jobs_owner_id', 'jobs', ['owner_id'])
    op.create_index('ix_jobs_category', 'jobs', ['category'])
    op.create_index('idx_jobs_owner_category', 'jobs', ['owner_id', 'category'])
    # At most one active job per (owner, category)
    op.create_index(
        'uq_jobs_active_slot', 'jobs', ['owner_id', 'category'],
        unique=True,
        sqlite_where=sa.text(ACTIVE_CLAUSE),
        postgresql_where=sa.text(ACTIVE_CLAUSE),
    )

    op.create_table('admin_audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('actor_key_id', sa.String(255), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target', sa.String(255), nullable=False),
        sa.Column('before_value', sa.Text(), nullable=True),
        sa.Column('after_value', sa.Text(), nullable=True),
        sa.Column('client_ip', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_admin_audit_logs_id', 'admin_audit_logs', ['id'])
    op.create_index('ix_admin_audit_logs_timestamp', 'admin_audit_logs', ['timestamp'])
    op.create_index('ix_admin_audit_logs_actor_key_id', 'admin_audit_logs', ['actor_key_id'])
    op.create_index('ix_admin_audit_logs_action', 'admin_audit_logs', ['action'])

    op.create_table('player_positions',
        sa.Column('player_id', sa.String(64), nullable=False),
        sa.Column('world_x', sa.Float(), nullable=False),
        sa.Column('world_y', sa.Float(), nullable=False),
        sa.Column('home_x', sa.Float(), nullable=True),
        sa.Column('home_y', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('player_id')
    )


def downgrade():
    op.drop_table('player_positions')
    op.drop_index('ix_admin_audit_logs_action', table_name='admin_audit_logs')
    op.drop_index('ix_admin_audit_logs_actor_key_id', table_name='admin_audit_logs')
    op.drop_index('ix_admin_audit_logs_timestamp', table_name='admin_audit_logs')
    op.drop_index('ix_admin_audit_logs_id', table_name='admin_audit_logs')
    op.drop_table('admin_audit_logs')
    op.drop_index('uq_jobs_active_slot', table_name='jobs')
    op.drop_index('idx_jobs_owner_category', table_name='jobs')
    op.drop_index('ix_jobs_category', table_name='jobs')
    op.drop_index('ix_jobs_owner_id', table_name='jobs')
    op.drop_table('jobs')
