"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Page views table
    op.create_table(
        'page_views',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('page', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('referrer', sa.String(), nullable=True),
        sa.Column('referrer_category', sa.String(), nullable=True),
        sa.Column('referrer_source', sa.String(), nullable=True),
        sa.Column('search_keywords', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('country_code', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('timezone', sa.String(), nullable=True),
        sa.Column('ip', sa.String(), nullable=True),
        sa.Column('device', sa.String(), nullable=True),
        sa.Column('browser', sa.String(), nullable=True),
        sa.Column('os', sa.String(), nullable=True),
        sa.Column('screen_resolution', sa.String(), nullable=True),
        sa.Column('utm_source', sa.String(), nullable=True),
        sa.Column('utm_medium', sa.String(), nullable=True),
        sa.Column('utm_campaign', sa.String(), nullable=True),
        sa.Column('utm_term', sa.String(), nullable=True),
        sa.Column('utm_content', sa.String(), nullable=True),
        sa.Column('entry_page', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('exit_page', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('time_on_page', sa.Integer(), nullable=True),
    )
    op.create_index('ix_page_views_session_id', 'page_views', ['session_id'])
    op.create_index('ix_page_views_page', 'page_views', ['page'])
    op.create_index('ix_page_views_timestamp', 'page_views', ['timestamp'])
    op.create_index('ix_page_views_session_page', 'page_views', ['session_id', 'page'])

    # Click events table
    op.create_table(
        'click_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('element_id', sa.String(), nullable=True),
        sa.Column('element_type', sa.String(), nullable=True),
        sa.Column('element_text', sa.String(), nullable=True),
        sa.Column('page', sa.String(), nullable=True),
        sa.Column('x_position', sa.Float(), nullable=True),
        sa.Column('y_position', sa.Float(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_click_events_session_id', 'click_events', ['session_id'])
    op.create_index('ix_click_events_element_id', 'click_events', ['element_id'])
    op.create_index('ix_click_events_timestamp', 'click_events', ['timestamp'])

    # Scroll events table: one row per (session, page)
    op.create_table(
        'scroll_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('page', sa.String(), nullable=False),
        sa.Column('scroll_depth', sa.Float(), nullable=True),
        sa.Column('max_scroll_depth', sa.Float(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('session_id', 'page', name='uq_scroll_events_session_page'),
    )
    op.create_index('ix_scroll_events_timestamp', 'scroll_events', ['timestamp'])

    # Form interactions table
    op.create_table(
        'form_interactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('form_id', sa.String(), nullable=True),
        sa.Column('field_name', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=True),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('page', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_form_interactions_session_id', 'form_interactions', ['session_id'])
    op.create_index('ix_form_interactions_form_id', 'form_interactions', ['form_id'])
    op.create_index('ix_form_interactions_timestamp', 'form_interactions', ['timestamp'])

    # Form submissions table
    op.create_table(
        'form_submissions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('form_type', sa.String(), nullable=True),
        sa.Column('page', sa.String(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('time_taken', sa.Integer(), nullable=True),
        sa.Column('field_errors', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_form_submissions_session_id', 'form_submissions', ['session_id'])
    op.create_index('ix_form_submissions_form_type', 'form_submissions', ['form_type'])
    op.create_index('ix_form_submissions_timestamp', 'form_submissions', ['timestamp'])

    # User sessions table: one row per client session id
    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('first_seen', sa.DateTime(), nullable=False),
        sa.Column('last_seen', sa.DateTime(), nullable=False),
        sa.Column('page_views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('device', sa.String(), nullable=True),
        sa.Column('browser', sa.String(), nullable=True),
        sa.Column('os', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('referrer', sa.String(), nullable=True),
        sa.Column('referrer_category', sa.String(), nullable=True),
        sa.Column('referrer_source', sa.String(), nullable=True),
        sa.Column('entry_page', sa.String(), nullable=True),
        sa.Column('exit_page', sa.String(), nullable=True),
        sa.Column('session_duration', sa.Integer(), nullable=True),
        sa.Column('converted', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('bounced', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_returning', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('utm_source', sa.String(), nullable=True),
        sa.Column('utm_medium', sa.String(), nullable=True),
        sa.Column('utm_campaign', sa.String(), nullable=True),
        sa.Column('utm_term', sa.String(), nullable=True),
        sa.Column('utm_content', sa.String(), nullable=True),
    )
    op.create_index('ix_user_sessions_session_id', 'user_sessions', ['session_id'], unique=True)
    op.create_index('ix_user_sessions_first_seen', 'user_sessions', ['first_seen'])

    # Distinct pages per session, in first-visit order
    op.create_table(
        'session_pages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('page', sa.String(), nullable=False),
        sa.Column('first_visited', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('session_id', 'page', name='uq_session_pages_session_page'),
    )
    op.create_index('ix_session_pages_session_id', 'session_pages', ['session_id'])

    # Leads table
    op.create_table(
        'leads',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('business_name', sa.String(), nullable=False),
        sa.Column('instagram_handle', sa.String(), nullable=False),
        sa.Column('services', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('business_type', sa.String(), nullable=False),
        sa.Column('budget', sa.String(), nullable=False),
        sa.Column('biggest_goal', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='new'),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_leads_email', 'leads', ['email'])
    op.create_index('ix_leads_status', 'leads', ['status'])
    op.create_index('ix_leads_submitted_at', 'leads', ['submitted_at'])

    # Admins table
    op.create_table(
        'admins',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='admin'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)

    # Event errors table
    op.create_table(
        'event_errors',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_type', sa.String(), nullable=True),
        sa.Column('session_id', sa.String(), nullable=True),
        sa.Column('payload', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_event_errors_event_type', 'event_errors', ['event_type'])
    op.create_index('ix_event_errors_session_id', 'event_errors', ['session_id'])


def downgrade() -> None:
    op.drop_table('event_errors')
    op.drop_table('admins')
    op.drop_table('leads')
    op.drop_table('session_pages')
    op.drop_table('user_sessions')
    op.drop_table('form_submissions')
    op.drop_table('form_interactions')
    op.drop_table('scroll_events')
    op.drop_table('click_events')
    op.drop_table('page_views')
