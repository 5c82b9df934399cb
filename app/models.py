import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Role(str, Enum):
    DEPARTMENT_USER = 'department_user'
    PRINCIPAL = 'principal'
    SUPER_ADMIN = 'super_admin'
    DESIGNING_TEAM = 'designing_team'
    PHOTOGRAPHY_TEAM = 'photography_team'
    PRESS_RELEASE_TEAM = 'press_release_team'


class BookingStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class WorkStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'


class PressReleaseStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class Institution(Base):
    __tablename__ = 'institutions'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    short_name: Mapped[str] = mapped_column(String(50), default='')
    logo_url: Mapped[str] = mapped_column(String(1000), default='')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    departments: Mapped[list['Department']] = relationship('Department', back_populates='institution')
    halls: Mapped[list['Hall']] = relationship('Hall', back_populates='institution')


class Department(Base):
    __tablename__ = 'departments'
    __table_args__ = (
        Index('ix_departments_institution_short_name', 'institution_id', 'short_name'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    short_name: Mapped[str] = mapped_column(String(50), index=True)
    institution_id: Mapped[str | None] = mapped_column(ForeignKey('institutions.id'), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    institution: Mapped['Institution | None'] = relationship('Institution', back_populates='departments')


class User(Base):
    __tablename__ = 'users'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), default='')
    full_name: Mapped[str] = mapped_column(String(255), default='')
    role: Mapped[str] = mapped_column(String(30), default=Role.DEPARTMENT_USER.value, index=True)
    department_id: Mapped[str | None] = mapped_column(ForeignKey('departments.id'), nullable=True, index=True)
    institution_id: Mapped[str | None] = mapped_column(ForeignKey('institutions.id'), nullable=True, index=True)
    theme_preference: Mapped[str] = mapped_column(String(50), default='hindusthan')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department: Mapped['Department | None'] = relationship('Department')
    institution: Mapped['Institution | None'] = relationship('Institution')


class Hall(Base):
    __tablename__ = 'halls'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[str] = mapped_column(Text, default='')
    image_url: Mapped[str] = mapped_column(String(1000), default='')
    stage_size: Mapped[str] = mapped_column(String(100), default='')
    seating_capacity: Mapped[int] = mapped_column(Integer, default=0)
    hall_type: Mapped[str] = mapped_column(String(100), default='')
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    has_ac: Mapped[bool] = mapped_column(Boolean, default=False)
    has_sound_system: Mapped[bool] = mapped_column(Boolean, default=False)
    institution_id: Mapped[str | None] = mapped_column(ForeignKey('institutions.id'), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    institution: Mapped['Institution | None'] = relationship('Institution', back_populates='halls')
    bookings: Mapped[list['Booking']] = relationship('Booking', back_populates='hall')


class Booking(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_hall_date', 'hall_id', 'booking_date'),
        Index('ix_bookings_status_date', 'status', 'booking_date'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    hall_id: Mapped[str] = mapped_column(ForeignKey('halls.id'), index=True)
    department_id: Mapped[str] = mapped_column(ForeignKey('departments.id'), index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey('users.id'), index=True)
    booking_date: Mapped[date] = mapped_column(Date, index=True)
    event_title: Mapped[str] = mapped_column(String(255))
    event_description: Mapped[str] = mapped_column(Text, default='')
    event_time: Mapped[str] = mapped_column(String(50), default='')
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.PENDING.value, index=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(ForeignKey('users.id'), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    is_ac: Mapped[bool] = mapped_column(Boolean, default=False)
    is_fan: Mapped[bool] = mapped_column(Boolean, default=False)
    is_photography: Mapped[bool] = mapped_column(Boolean, default=False)

    media_coordinator_name: Mapped[str] = mapped_column(String(255), default='')
    contact_no: Mapped[str] = mapped_column(String(50), default='')
    chief_guest_name: Mapped[str] = mapped_column(String(255), default='')
    chief_guest_designation: Mapped[str] = mapped_column(String(255), default='')
    chief_guest_organization: Mapped[str] = mapped_column(String(255), default='')
    chief_guest_photo_url: Mapped[str] = mapped_column(String(1000), default='')
    event_partner_organization: Mapped[str] = mapped_column(String(255), default='')
    event_partner_details: Mapped[str] = mapped_column(Text, default='')
    event_partner_logo_url: Mapped[str] = mapped_column(String(1000), default='')
    event_coordinator_name: Mapped[str] = mapped_column(String(255), default='')
    event_convenor_details: Mapped[str] = mapped_column(Text, default='')
    in_house_guest: Mapped[str] = mapped_column(Text, default='')
    files_urls_json: Mapped[str] = mapped_column(Text, default='[]')

    work_status: Mapped[str] = mapped_column(String(20), default=WorkStatus.PENDING.value, index=True)
    final_file_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    photography_drive_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    hall: Mapped['Hall'] = relationship('Hall', back_populates='bookings')
    department: Mapped['Department'] = relationship('Department')
    user: Mapped['User'] = relationship('User', foreign_keys=[user_id])
    press_release: Mapped['PressRelease | None'] = relationship('PressRelease', back_populates='booking', uselist=False)


class BookingAuditLog(Base):
    __tablename__ = 'booking_audit_logs'
    __table_args__ = (
        Index('ix_booking_audit_logs_booking_created', 'booking_id', 'created_at'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Plain column, not a foreign key: the trail outlives a deleted booking.
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    action: Mapped[str] = mapped_column(String(40), index=True)
    reason: Mapped[str] = mapped_column(Text, default='')
    actor_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    details_json: Mapped[str] = mapped_column(Text, default='{}')
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class PressRelease(Base):
    __tablename__ = 'press_releases'
    __table_args__ = (
        UniqueConstraint('booking_id', name='uq_press_releases_booking_id'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    booking_id: Mapped[str] = mapped_column(ForeignKey('bookings.id'), index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey('users.id'), index=True)
    department_id: Mapped[str] = mapped_column(ForeignKey('departments.id'), index=True)
    coordinator_name: Mapped[str] = mapped_column(String(255))
    event_title: Mapped[str] = mapped_column(String(255))
    event_date: Mapped[date] = mapped_column(Date, index=True)
    english_writeup: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    tamil_writeup: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    photo_description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    photos_json: Mapped[str] = mapped_column(Text, default='[]')
    status: Mapped[str] = mapped_column(String(20), default=PressReleaseStatus.PENDING.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking: Mapped['Booking'] = relationship('Booking', back_populates='press_release')
    department: Mapped['Department'] = relationship('Department')
    user: Mapped['User'] = relationship('User')


class Setting(Base):
    __tablename__ = 'settings'

    setting_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    setting_value: Mapped[str] = mapped_column(Text, default='null')
    updated_by: Mapped[str | None] = mapped_column(ForeignKey('users.id'), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
