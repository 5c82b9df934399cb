from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    role: str | None = None
    department_id: str | None = None
    institution_id: str | None = None


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class UserUpdateRequest(BaseModel):
    full_name: str | None = None
    theme_preference: str | None = None
    role: str | None = None
    department_id: str | None = None
    institution_id: str | None = None
    password: str | None = None


class InstitutionCreate(BaseModel):
    name: str
    short_name: str = ''
    logo_url: str = ''


class InstitutionUpdate(BaseModel):
    name: str | None = None
    short_name: str | None = None
    logo_url: str | None = None


class InstitutionRead(BaseModel):
    id: str
    name: str
    short_name: str
    logo_url: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class DepartmentCreate(BaseModel):
    name: str
    short_name: str
    institution_id: str | None = None


class DepartmentUpdate(BaseModel):
    name: str | None = None
    short_name: str | None = None
    institution_id: str | None = None


class DepartmentRead(BaseModel):
    id: str
    name: str
    short_name: str
    institution_id: str | None = None

    class Config:
        from_attributes = True


class HallCreate(BaseModel):
    name: str
    description: str = ''
    image_url: str = ''
    stage_size: str = ''
    seating_capacity: int = Field(default=0, ge=0)
    hall_type: str = ''
    is_active: bool = True
    has_ac: bool = False
    has_sound_system: bool = False
    institution_id: str | None = None


class HallUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    stage_size: str | None = None
    seating_capacity: int | None = Field(default=None, ge=0)
    hall_type: str | None = None
    is_active: bool | None = None
    has_ac: bool | None = None
    has_sound_system: bool | None = None
    institution_id: str | None = None


class HallRead(BaseModel):
    id: str
    name: str
    description: str
    image_url: str
    stage_size: str
    seating_capacity: int
    hall_type: str
    is_active: bool
    has_ac: bool
    has_sound_system: bool
    institution_id: str | None = None

    class Config:
        from_attributes = True


class BookingCreate(BaseModel):
    hall_id: str
    booking_date: date
    event_title: str
    start_time: str
    end_time: str
    event_time: str | None = None
    department_id: str | None = None
    event_description: str = ''
    is_ac: bool = False
    is_fan: bool = False
    is_photography: bool = False
    media_coordinator_name: str = ''
    contact_no: str = ''
    chief_guest_name: str = ''
    chief_guest_designation: str = ''
    chief_guest_organization: str = ''
    chief_guest_photo_url: str = ''
    event_partner_organization: str = ''
    event_partner_details: str = ''
    event_partner_logo_url: str = ''
    event_coordinator_name: str = ''
    event_convenor_details: str = ''
    in_house_guest: str = ''
    files_urls: list[str] = Field(default_factory=list)


class BookingUpdate(BaseModel):
    reason_for_change: str | None = None
    photography_drive_link: str | None = None
    hall_id: str | None = None
    booking_date: date | None = None
    event_title: str | None = None
    event_time: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    event_description: str | None = None
    is_ac: bool | None = None
    is_fan: bool | None = None
    is_photography: bool | None = None
    media_coordinator_name: str | None = None
    contact_no: str | None = None
    chief_guest_name: str | None = None
    chief_guest_designation: str | None = None
    chief_guest_organization: str | None = None
    chief_guest_photo_url: str | None = None
    event_partner_organization: str | None = None
    event_partner_details: str | None = None
    event_partner_logo_url: str | None = None
    event_coordinator_name: str | None = None
    event_convenor_details: str | None = None
    in_house_guest: str | None = None
    files_urls: list[str] | None = None


class BookingStatusUpdate(BaseModel):
    status: Literal['approved', 'rejected']
    rejection_reason: str | None = None


class BookingDeleteRequest(BaseModel):
    reason: str | None = None


class PressReleaseStatusUpdate(BaseModel):
    status: Literal['pending', 'approved', 'rejected']


class SettingUpdate(BaseModel):
    value: Any
