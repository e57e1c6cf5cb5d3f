"""initial schema

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-19 10:12:41.215380

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e5b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'roles',
        _id(),
        sa.Column('name', sa.Text(), nullable=False, unique=True),
    )
    op.create_table(
        'users',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text("timezone('utc', now())"),
                  nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )

    event_status = sa.Enum('UPCOMING', 'ENDED', 'ARCHIVED', 'CANCELLED', name='event_status')
    op.create_table(
        'events',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('cover_image', sa.Text(), nullable=True),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', event_status, nullable=False, server_default='UPCOMING'),
        _created_at(),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('end_date > start_date', name='chk_event_time_range'),
    )
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])

    op.create_table(
        'ticket_types',
        _id(),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _created_at(),
        sa.UniqueConstraint('event_id', 'name', name='uq_ticket_type_event_name'),
        sa.CheckConstraint('price >= 0', name='chk_ticket_type_price'),
        sa.CheckConstraint('quantity >= 0', name='chk_ticket_type_quantity'),
    )
    op.create_index('ix_ticket_types_event_id', 'ticket_types', ['event_id'])

    discount_type = sa.Enum('percentage', 'fixed', name='discount_type')
    op.create_table(
        'promo_codes',
        _id(),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), sa.ForeignKey('ticket_types.id', ondelete='CASCADE'),
                  nullable=True),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('discount_type', discount_type, nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('max_usage', sa.Integer(), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=False),
        _created_at(),
        sa.UniqueConstraint('event_id', 'code', name='uq_promo_event_code'),
        sa.CheckConstraint('amount > 0', name='chk_promo_amount'),
        sa.CheckConstraint("discount_type <> 'percentage' OR amount <= 100", name='chk_promo_percentage'),
        sa.CheckConstraint('max_usage >= 1', name='chk_promo_max_usage'),
        sa.CheckConstraint('usage_count >= 0 AND usage_count <= max_usage', name='chk_promo_usage_budget'),
        sa.CheckConstraint('end_date >= start_date', name='chk_promo_window'),
    )
    op.create_index('ix_promo_codes_event_id', 'promo_codes', ['event_id'])
    op.create_index('ix_promo_codes_ticket_type_id', 'promo_codes', ['ticket_type_id'])
    op.create_index('ix_promo_codes_code', 'promo_codes', ['code'])

    op.create_table(
        'tickets',
        _id(),
        sa.Column('ticket_type_id', sa.Integer(), sa.ForeignKey('ticket_types.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        sa.Column('purchased', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('checked_in', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('waitlisted', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _created_at(),
        sa.CheckConstraint('NOT checked_in OR purchased', name='chk_ticket_checkin_requires_purchase'),
    )
    op.create_index('ix_tickets_ticket_type_id', 'tickets', ['ticket_type_id'])
    op.create_index(
        'ix_tickets_free_pool',
        'tickets',
        ['ticket_type_id', 'id'],
        postgresql_where=sa.text('NOT purchased AND NOT waitlisted')
    )

    op.create_table(
        'purchased_tickets',
        _id(),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False,
                  unique=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('promo_code_id', sa.Integer(), sa.ForeignKey('promo_codes.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('final_price', sa.Numeric(10, 2), nullable=True),
        _created_at(),
        sa.CheckConstraint('final_price IS NULL OR final_price >= 0', name='chk_purchase_final_price'),
    )
    op.create_index('ix_purchased_tickets_user_id', 'purchased_tickets', ['user_id'])

    op.create_table(
        'waitlisted_tickets',
        _id(),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False,
                  unique=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('promo_code_id', sa.Integer(), sa.ForeignKey('promo_codes.id', ondelete='SET NULL'),
                  nullable=True),
        _created_at(),
    )
    op.create_index('ix_waitlisted_tickets_user_id', 'waitlisted_tickets', ['user_id'])

    op.create_table(
        'check_ins',
        _id(),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False,
                  unique=True),
        sa.Column('staff_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _created_at(),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('check_ins', 'waitlisted_tickets', 'purchased_tickets', 'tickets', 'promo_codes',
                  'ticket_types', 'events', 'user_roles', 'users', 'roles'):
        op.drop_table(table)
    op.execute("DROP TYPE IF EXISTS discount_type")
    op.execute("DROP TYPE IF EXISTS event_status")
