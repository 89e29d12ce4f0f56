"""create user, card, deck and deck_card tables

Revision ID: 5c2e9a7d41b0
Revises:
Create Date: 2026-02-23 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d41b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'card',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('hp', sa.Integer(), nullable=False),
        sa.Column('attack', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('pokedex_number', sa.Integer(), nullable=True),
        sa.Column('img_url', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'deck',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_deck_user_id', 'deck', ['user_id'], unique=False)

    op.create_table(
        'deck_card',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('deck_id', sa.Integer(), nullable=False),
        sa.Column('card_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['deck_id'], ['deck.id']),
        sa.ForeignKeyConstraint(['card_id'], ['card.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_deck_card_deck_id', 'deck_card', ['deck_id'], unique=False)


def downgrade():
    op.drop_index('ix_deck_card_deck_id', table_name='deck_card')
    op.drop_table('deck_card')
    op.drop_index('ix_deck_user_id', table_name='deck')
    op.drop_table('deck')
    op.drop_table('card')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
