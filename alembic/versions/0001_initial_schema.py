"""Initial schema - documents, responses, content, accounts

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

Creates every table:
- rfp_documents, company_documents
- rfp_responses (pricing inputs, derived totals, optimistic version)
- templates, branding_settings
- users, verification_tokens, sessions
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Documents
    # ==========================================================================
    op.create_table(
        'rfp_documents',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('client_name', sa.Text(), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_type', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='uploaded', nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        _timestamp('uploaded_at'),
        _timestamp('processed_at', nullable=True),
        sa.CheckConstraint('file_size > 0', name='ck_rfp_documents_file_size_positive'),
    )
    op.create_index('idx_rfp_documents_status', 'rfp_documents', ['status'])

    op.create_table(
        'company_documents',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_type', sa.String(255), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        _timestamp('uploaded_at'),
        sa.CheckConstraint('file_size > 0', name='ck_company_documents_file_size_positive'),
    )
    op.create_index('idx_company_documents_category', 'company_documents', ['category'])

    # ==========================================================================
    # Responses
    # ==========================================================================
    op.create_table(
        'rfp_responses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('rfp_document_id', sa.Integer(), sa.ForeignKey('rfp_documents.id'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='draft', nullable=False),
        sa.Column('project_duration_months', sa.Integer(), nullable=True),
        sa.Column('number_of_consultants', sa.Integer(), nullable=True),
        sa.Column('price_per_consultant_per_month', sa.Numeric(10, 2), nullable=True),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('delivery_model', sa.String(32), nullable=True),
        sa.Column('currency', sa.String(3), server_default='USD', nullable=False),
        sa.Column('consultant_types', sa.Text(), nullable=True),
        sa.Column('additional_costs', sa.Text(), nullable=True),
        sa.Column('payment_terms', sa.Text(), nullable=True),
        sa.Column('proposal_validity_days', sa.Integer(), nullable=True),
        sa.Column('total_project_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('final_total_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('idx_rfp_responses_document', 'rfp_responses', ['rfp_document_id'])
    op.create_index('idx_rfp_responses_status', 'rfp_responses', ['status'])

    # ==========================================================================
    # Content & branding
    # ==========================================================================
    op.create_table(
        'templates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('idx_templates_category', 'templates', ['category'])

    op.create_table(
        'branding_settings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('company_name', sa.Text(), nullable=False),
        sa.Column('primary_color', sa.String(7), server_default='#1976D2', nullable=False),
        sa.Column('secondary_color', sa.String(7), server_default='#FF9800', nullable=False),
        sa.Column('font_family', sa.String(100), server_default='Roboto', nullable=False),
        sa.Column('presentation_url', sa.Text(), nullable=True),
        sa.Column('presentation_name', sa.Text(), nullable=True),
        sa.Column('presentation_size', sa.Integer(), nullable=True),
        _timestamp('updated_at'),
        sa.CheckConstraint('id = 1', name='ck_branding_settings_singleton'),
    )

    # ==========================================================================
    # Accounts, single-use tokens, sessions
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(320), unique=True, nullable=False),
        sa.Column('first_name', sa.Text(), nullable=True),
        sa.Column('last_name', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('email_verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _timestamp('last_login_at', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    op.create_table(
        'verification_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_hash', sa.String(64), unique=True, nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        _timestamp('used_at', nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('idx_verification_tokens_user_type', 'verification_tokens', ['user_id', 'type'])

    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_token_hash', sa.String(64), unique=True, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('idx_sessions_user_id', 'sessions', ['user_id'])
    op.create_index('idx_sessions_expires_at', 'sessions', ['expires_at'])


def downgrade() -> None:
    """Drop all tables (reverse dependency order)."""
    op.drop_table('sessions')
    op.drop_table('verification_tokens')
    op.drop_table('users')
    op.drop_table('branding_settings')
    op.drop_table('templates')
    op.drop_table('rfp_responses')
    op.drop_table('company_documents')
    op.drop_table('rfp_documents')
