"""create players, daily scores, groups, challenges, live matches and medals

Revision ID: 3a7c9e1f5b20
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1f5b20'
down_revision = None
branch_labels = None
depends_on = None

DIFFICULTIES = ('easy', 'medium', 'hard')


def _counter(name):
    return sa.Column(name, sa.Integer(), nullable=False, server_default='0')


def _contest_columns():
    cols = [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('challenger_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('challenged_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('sudoku_group.id'), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('puzzle_data', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    ]
    for side in ('challenger', 'challenged'):
        cols.extend([
            sa.Column(f'{side}_time', sa.Integer(), nullable=True),
            sa.Column(f'{side}_score', sa.Integer(), nullable=True),
            sa.Column(f'{side}_mistakes', sa.Integer(), nullable=True),
        ])
    return cols


def upgrade():
    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_player_username', 'player', ['username'], unique=True)
    op.create_index('ix_player_email', 'player', ['email'], unique=True)

    daily_cols = [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('play_date', sa.Date(), nullable=False),
    ]
    for d in DIFFICULTIES:
        daily_cols.append(sa.Column(f'best_time_{d}', sa.Integer(), nullable=True))
        daily_cols.append(sa.Column(f'best_time_{d}_no_mistakes', sa.Integer(), nullable=True))
    for d in DIFFICULTIES:
        daily_cols.append(_counter(f'games_completed_{d}'))
        daily_cols.append(_counter(f'games_completed_{d}_no_mistakes'))
    daily_cols.append(_counter('daily_score'))
    op.create_table(
        'daily_score',
        *daily_cols,
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id', 'play_date', name='uq_daily_score_player_date'),
    )
    op.create_index('ix_daily_score_player_id', 'daily_score', ['player_id'])
    op.create_index('ix_daily_score_play_date', 'daily_score', ['play_date'])

    op.create_table(
        'sudoku_group',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sudoku_group_name', 'sudoku_group', ['name'])

    op.create_table(
        'group_member',
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('sudoku_group.id'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        _counter('wins'),
        _counter('losses'),
        _counter('draws'),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('group_id', 'player_id'),
    )

    op.create_table('challenge', *_contest_columns(), sa.PrimaryKeyConstraint('id'))
    op.create_index('ix_challenge_challenger_id', 'challenge', ['challenger_id'])
    op.create_index('ix_challenge_challenged_id', 'challenge', ['challenged_id'])

    op.create_table(
        'live_match',
        *_contest_columns(),
        sa.Column('challenger_started_at', sa.DateTime(), nullable=True),
        sa.Column('challenged_started_at', sa.DateTime(), nullable=True),
        sa.Column('challenger_completed_at', sa.DateTime(), nullable=True),
        sa.Column('challenged_completed_at', sa.DateTime(), nullable=True),
        sa.Column('winner', sa.String(length=16), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_live_match_challenger_id', 'live_match', ['challenger_id'])
    op.create_index('ix_live_match_challenged_id', 'live_match', ['challenged_id'])

    op.create_table(
        'medal',
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
        sa.Column('medal_type', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('number_of_medals', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('player_id', 'medal_type'),
    )


def downgrade():
    op.drop_table('medal')
    op.drop_index('ix_live_match_challenged_id', table_name='live_match')
    op.drop_index('ix_live_match_challenger_id', table_name='live_match')
    op.drop_table('live_match')
    op.drop_index('ix_challenge_challenged_id', table_name='challenge')
    op.drop_index('ix_challenge_challenger_id', table_name='challenge')
    op.drop_table('challenge')
    op.drop_table('group_member')
    op.drop_index('ix_sudoku_group_name', table_name='sudoku_group')
    op.drop_table('sudoku_group')
    op.drop_index('ix_daily_score_play_date', table_name='daily_score')
    op.drop_index('ix_daily_score_player_id', table_name='daily_score')
    op.drop_table('daily_score')
    op.drop_index('ix_player_email', table_name='player')
    op.drop_index('ix_player_username', table_name='player')
    op.drop_table('player')
