"""initial hall booking schema

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 00:01:00
"""

from alembic import op
import sqlalchemy as sa


revision = '20260301_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'institutions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False, unique=True),
        sa.Column('short_name', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('logo_url', sa.String(length=1000), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_institutions_created_at', 'institutions', ['created_at'])

    op.create_table(
        'departments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('short_name', sa.String(length=50), nullable=False),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_departments_short_name', 'departments', ['short_name'])
    op.create_index('ix_departments_institution_id', 'departments', ['institution_id'])
    op.create_index('ix_departments_created_at', 'departments', ['created_at'])
    op.create_index('ix_departments_institution_short_name', 'departments', ['institution_id', 'short_name'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('full_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('role', sa.String(length=30), nullable=False, server_default='department_user'),
        sa.Column('department_id', sa.String(length=36), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=True),
        sa.Column('theme_preference', sa.String(length=50), nullable=False, server_default='hindusthan'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_department_id', 'users', ['department_id'])
    op.create_index('ix_users_institution_id', 'users', ['institution_id'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'halls',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(length=1000), nullable=False, server_default=''),
        sa.Column('stage_size', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('seating_capacity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('hall_type', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('has_ac', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_sound_system', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('institution_id', sa.String(length=36), sa.ForeignKey('institutions.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_halls_name', 'halls', ['name'])
    op.create_index('ix_halls_is_active', 'halls', ['is_active'])
    op.create_index('ix_halls_institution_id', 'halls', ['institution_id'])
    op.create_index('ix_halls_created_at', 'halls', ['created_at'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('hall_id', sa.String(length=36), sa.ForeignKey('halls.id'), nullable=False),
        sa.Column('department_id', sa.String(length=36), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('event_title', sa.String(length=255), nullable=False),
        sa.Column('event_description', sa.Text(), nullable=False, server_default=''),
        sa.Column('event_time', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('start_time', sa.String(length=5), nullable=True),
        sa.Column('end_time', sa.String(length=5), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('is_ac', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_fan', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_photography', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('media_coordinator_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('contact_no', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('chief_guest_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('chief_guest_designation', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('chief_guest_organization', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('chief_guest_photo_url', sa.String(length=1000), nullable=False, server_default=''),
        sa.Column('event_partner_organization', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('event_partner_details', sa.Text(), nullable=False, server_default=''),
        sa.Column('event_partner_logo_url', sa.String(length=1000), nullable=False, server_default=''),
        sa.Column('event_coordinator_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('event_convenor_details', sa.Text(), nullable=False, server_default=''),
        sa.Column('in_house_guest', sa.Text(), nullable=False, server_default=''),
        sa.Column('files_urls_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('work_status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('final_file_url', sa.String(length=1000), nullable=True),
        sa.Column('photography_drive_link', sa.String(length=1000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_bookings_hall_id', 'bookings', ['hall_id'])
    op.create_index('ix_bookings_department_id', 'bookings', ['department_id'])
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_work_status', 'bookings', ['work_status'])
    op.create_index('ix_bookings_created_at', 'bookings', ['created_at'])
    op.create_index('ix_bookings_hall_date', 'bookings', ['hall_id', 'booking_date'])
    op.create_index('ix_bookings_status_date', 'bookings', ['status', 'booking_date'])

    op.create_table(
        'press_releases',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('booking_id', sa.String(length=36), sa.ForeignKey('bookings.id'), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('department_id', sa.String(length=36), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('coordinator_name', sa.String(length=255), nullable=False),
        sa.Column('event_title', sa.String(length=255), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('english_writeup', sa.String(length=1000), nullable=True),
        sa.Column('tamil_writeup', sa.String(length=1000), nullable=True),
        sa.Column('photo_description', sa.String(length=1000), nullable=True),
        sa.Column('photos_json', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('booking_id', name='uq_press_releases_booking_id'),
    )
    op.create_index('ix_press_releases_booking_id', 'press_releases', ['booking_id'])
    op.create_index('ix_press_releases_user_id', 'press_releases', ['user_id'])
    op.create_index('ix_press_releases_department_id', 'press_releases', ['department_id'])
    op.create_index('ix_press_releases_event_date', 'press_releases', ['event_date'])
    op.create_index('ix_press_releases_status', 'press_releases', ['status'])
    op.create_index('ix_press_releases_created_at', 'press_releases', ['created_at'])

    op.create_table(
        'settings',
        sa.Column('setting_key', sa.String(length=255), primary_key=True),
        sa.Column('setting_value', sa.Text(), nullable=False, server_default='null'),
        sa.Column('updated_by', sa.String(length=36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('settings')
    op.drop_table('press_releases')
    op.drop_table('bookings')
    op.drop_table('halls')
    op.drop_table('users')
    op.drop_table('departments')
    op.drop_table('institutions')
