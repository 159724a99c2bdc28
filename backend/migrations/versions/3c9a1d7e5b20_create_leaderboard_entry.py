"""create leaderboard_entry

Revision ID: 3c9a1d7e5b20
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1d7e5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'leaderboard_entry' in insp.get_table_names():
        return
    op.create_table(
        'leaderboard_entry',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('round1_score', sa.Integer(), nullable=False),
        sa.Column('round2_score', sa.Integer(), nullable=False),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_leaderboard_entry_delta', 'leaderboard_entry', ['delta'])


def downgrade():
    op.drop_index('ix_leaderboard_entry_delta', table_name='leaderboard_entry')
    op.drop_table('leaderboard_entry')
