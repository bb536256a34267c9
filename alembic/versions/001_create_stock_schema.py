"""create stock schema

Revision ID: 001_create_stock_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
import uuid

# revision identifiers, used by Alembic.
revision = '001_create_stock_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """
    Cria as tabelas de produtos e movimentações.
    A exclusão de movimentações é lógica (coluna deleted).
    """
    op.create_table(
        'products',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(32), nullable=False, server_default='unidade'),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('initial_quantity', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('min_quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_products_id', 'products', ['id'])
    op.create_index('ix_products_code', 'products', ['code'])
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'movements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, default=uuid.uuid4),
        sa.Column('product_id', UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit', sa.String(32), nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('compensates_movement_id', UUID(as_uuid=True), nullable=True),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['compensates_movement_id'], ['movements.id'], ondelete='SET NULL'),
        sa.CheckConstraint("type IN ('entrada', 'saida')", name='ck_movements_type'),
        sa.CheckConstraint('quantity > 0', name='ck_movements_quantity_positive'),
    )
    op.create_index('ix_movements_id', 'movements', ['id'])
    op.create_index('ix_movements_product_id', 'movements', ['product_id'])
    op.create_index('ix_movements_compensates_movement_id', 'movements', ['compensates_movement_id'])
    op.create_index('ix_movements_deleted', 'movements', ['deleted'])
    op.create_index('ix_movements_created_at', 'movements', ['created_at'])


def downgrade():
    """Remove as tabelas de estoque"""
    op.drop_index('ix_movements_created_at', table_name='movements')
    op.drop_index('ix_movements_deleted', table_name='movements')
    op.drop_index('ix_movements_compensates_movement_id', table_name='movements')
    op.drop_index('ix_movements_product_id', table_name='movements')
    op.drop_index('ix_movements_id', table_name='movements')
    op.drop_table('movements')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_index('ix_products_code', table_name='products')
    op.drop_index('ix_products_id', table_name='products')
    op.drop_table('products')
