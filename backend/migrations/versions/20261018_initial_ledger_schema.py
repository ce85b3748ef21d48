"""initial ledger schema

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the InvenPro schema from scratch:
- products: catalog (seq insertion order + public string id)
- stock_movements: append-only movement ledger
- documents / document_lines: append-only document ledger
- document_sequences: per-type, per-year document counters
- partners: supplier / customer directory
- audit_log: append-only audit trail
- operators / session_tokens: login
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('brand', sa.String(length=120), nullable=True),
        sa.Column('hsn_code', sa.String(length=32), nullable=True),
        sa.Column('uom', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('min_stock', sa.Integer(), nullable=False),
        sa.Column('max_stock', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.String(length=64), nullable=False),
        sa.Column('purchase_price_cents', sa.Integer(), nullable=False),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_id', 'products', ['id'], unique=True)
    op.create_index('ix_products_category', 'products', ['category'])

    # ============================================================================
    # stock_movements
    # ============================================================================
    op.create_table(
        'stock_movements',
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('doc_ref', sa.String(length=64), nullable=True),
        sa.Column('warehouse_id', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'], unique=True)
    op.create_index('ix_stock_movements_type', 'stock_movements', ['type'])
    op.create_index('ix_stock_movements_timestamp', 'stock_movements', ['timestamp'])
    op.create_index('ix_movements_product', 'stock_movements', ['product_id'])
    op.create_index('ix_movements_doc_ref', 'stock_movements', ['doc_ref'])

    # ============================================================================
    # documents / document_lines
    # ============================================================================
    op.create_table(
        'documents',
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('doc_type', sa.String(length=32), nullable=False),
        sa.Column('doc_no', sa.String(length=64), nullable=False),
        sa.Column('partner_name', sa.String(length=255), nullable=False),
        sa.Column('partner_contact', sa.String(length=120), nullable=True),
        sa.Column('gstin', sa.String(length=32), nullable=True),
        sa.Column('billing_address', sa.Text(), nullable=True),
        sa.Column('payment_status', sa.String(length=16), nullable=False),
        sa.Column('discount_bps', sa.Integer(), nullable=False),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('discount_cents', sa.Integer(), nullable=False),
        sa.Column('tax_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('vehicle_no', sa.String(length=32), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_documents_id', 'documents', ['id'], unique=True)
    op.create_index('ix_documents_type', 'documents', ['doc_type'])
    op.create_index('ix_documents_doc_no', 'documents', ['doc_no'])
    op.create_index('ix_documents_timestamp', 'documents', ['timestamp'])

    op.create_table(
        'document_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.String(length=36), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('hsn', sa.String(length=32), nullable=True),
        sa.Column('uom', sa.String(length=16), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_id', 'line_no', name='uq_document_lines_doc_line'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_document_lines_document_id', 'document_lines', ['document_id'])
    op.create_index('ix_document_lines_product_id', 'document_lines', ['product_id'])

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('doc_type', sa.String(length=32), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('doc_type', 'year', name='uq_doc_sequences_type_year'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # partners
    # ============================================================================
    op.create_table(
        'partners',
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('contact', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('gstin', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_partners_id', 'partners', ['id'], unique=True)
    op.create_index('ix_partners_type', 'partners', ['type'])

    # ============================================================================
    # audit_log
    # ============================================================================
    op.create_table(
        'audit_log',
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.Text(), nullable=False),
        sa.Column('user', sa.String(length=255), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'], unique=True)
    op.create_index('ix_audit_log_action', 'audit_log', ['action'])
    op.create_index('ix_audit_log_timestamp', 'audit_log', ['timestamp'])

    # ============================================================================
    # operators / session_tokens
    # ============================================================================
    op.create_table(
        'operators',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_operators_username'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_operators_username', 'operators', ['username'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('operator_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['operator_id'], ['operators.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_operator_id', 'session_tokens', ['operator_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_operator_active', 'session_tokens', ['operator_id', 'is_revoked'])


def downgrade():
    op.drop_table('session_tokens')
    op.drop_table('operators')
    op.drop_table('audit_log')
    op.drop_table('partners')
    op.drop_table('document_sequences')
    op.drop_table('document_lines')
    op.drop_table('documents')
    op.drop_table('stock_movements')
    op.drop_table('products')
