"""create_file_tables

Revision ID: 3a7c1e9d2b40
Revises:
Create Date: 2026-10-18 09:12:41.208113

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c1e9d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'files',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('storage_key', sa.String(length=500), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_key')
    )
    op.create_index(op.f('ix_files_created_at'), 'files', ['created_at'], unique=False)

    # Mapping tables share one layout; file_id is a logical reference only
    for table in ('post_files', 'user_files'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('owner_id', sa.Integer(), nullable=False),
            sa.Column('file_id', sa.Integer(), nullable=False),
            sa.Column('role', sa.String(length=30), nullable=False),
            sa.Column('display_order', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f(f'ix_{table}_owner_id'), table, ['owner_id'], unique=False)
        op.create_index(op.f(f'ix_{table}_file_id'), table, ['file_id'], unique=False)
        op.create_index(f'idx_{table}_owner_role', table, ['owner_id', 'role'], unique=False)


def downgrade() -> None:
    for table in ('user_files', 'post_files'):
        op.drop_index(f'idx_{table}_owner_role', table_name=table)
        op.drop_index(op.f(f'ix_{table}_file_id'), table_name=table)
        op.drop_index(op.f(f'ix_{table}_owner_id'), table_name=table)
        op.drop_table(table)

    op.drop_index(op.f('ix_files_created_at'), table_name='files')
    op.drop_table('files')
