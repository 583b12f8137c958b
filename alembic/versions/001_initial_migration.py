"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('CALLER', 'MANAGER', 'TEAM_LEADER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('reporting_to', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_reporting_to'), 'users', ['reporting_to'], unique=False)

    # Create leads table
    op.create_table('leads',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('number', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('lead_type', sa.Enum('HOT', 'WARM', 'COLD', name='leadtype'), nullable=False),
        sa.Column('source', sa.Enum('GOOGLE_ADS', 'FACEBOOK', 'LINKEDIN', 'EMAIL_CAMPAIGN', 'OTHER', name='leadsource'), nullable=False),
        sa.Column('service', sa.Enum('WEBSITE', 'AUTOMATION', 'LP', 'APP', 'WEB_APP', 'OTHER', name='servicetype'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('NEW', 'CONTACTED', 'QUALIFIED', 'PROPOSAL', 'NEGOTIATION', 'CONVERTED', 'LOST', name='leadstatus'), nullable=False),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('created_by_name', sa.String(), nullable=True),
        sa.Column('assigned_to', sa.String(), nullable=True),
        sa.Column('assigned_to_name', sa.String(), nullable=True),
        sa.Column('assignment_history', JSONType, nullable=False),
        sa.Column('team_thread', JSONType, nullable=False),
        sa.Column('comments', JSONType, nullable=False),
        sa.Column('reminders', JSONType, nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_lead_status_type', 'leads', ['status', 'lead_type'], unique=False)
    op.create_index('idx_lead_assigned_to', 'leads', ['assigned_to'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_lead_assigned_to', table_name='leads')
    op.drop_index('idx_lead_status_type', table_name='leads')
    op.drop_table('leads')
    op.drop_index(op.f('ix_users_reporting_to'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')

    sa.Enum(name='leadstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='servicetype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='leadsource').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='leadtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
