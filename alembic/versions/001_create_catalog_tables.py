"""Create categories, products and product_categories tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog tables."""
    # Categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('name', name='categories_name_unique'),
    )

    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('name', name='products_name_unique'),
    )

    # Product <-> category links; rows go away with either side
    op.create_table(
        'product_categories',
        sa.Column(
            'product_id',
            sa.Integer(),
            sa.ForeignKey(
                'products.id',
                ondelete='CASCADE',
                name='product_categories_product_id_products_id_fk',
            ),
            nullable=False,
        ),
        sa.Column(
            'category_id',
            sa.Integer(),
            sa.ForeignKey(
                'categories.id',
                ondelete='CASCADE',
                name='product_categories_category_id_categories_id_fk',
            ),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('product_id', 'category_id'),
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_table('product_categories')
    op.drop_table('products')
    op.drop_table('categories')
