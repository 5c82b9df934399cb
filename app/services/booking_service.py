from __future__ import annotations

import json
import logging
import re
from datetime import date

from sqlalchemy.orm import Query, Session, joinedload

from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Booking, BookingAuditLog, BookingStatus, Hall, Role, WorkStatus
from app.services.institution_scope_service import (
    apply_institution_scope,
    assert_institution_access,
    get_actor_institution_id,
)
from app.services.storage_service import save_file
from app.services.tenancy_service import get_department, get_or_create_admin_department


logger = logging.getLogger(__name__)

ADMIN_ROLES = {Role.PRINCIPAL.value, Role.SUPER_ADMIN.value}
BOOKING_ROLES = ADMIN_ROLES | {Role.DEPARTMENT_USER.value}
TEAM_ROLES = {Role.DESIGNING_TEAM.value, Role.PHOTOGRAPHY_TEAM.value, Role.PRESS_RELEASE_TEAM.value}
DESIGN_ROLES = {Role.DESIGNING_TEAM.value, Role.SUPER_ADMIN.value}

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')

BOOLEAN_FIELDS = ('is_ac', 'is_fan', 'is_photography')
TEXT_FIELDS = (
    'event_description',
    'media_coordinator_name',
    'contact_no',
    'chief_guest_name',
    'chief_guest_designation',
    'chief_guest_organization',
    'chief_guest_photo_url',
    'event_partner_organization',
    'event_partner_details',
    'event_partner_logo_url',
    'event_coordinator_name',
    'event_convenor_details',
    'in_house_guest',
)
EDITABLE_FIELDS = ('hall_id', 'booking_date', 'event_title', 'event_time', 'start_time', 'end_time', 'files_urls') + (
    BOOLEAN_FIELDS + TEXT_FIELDS
)


class BookingStateError(ValueError):
    """Raised when a booking is not in a state that allows the requested change."""


def _decode_list(raw: str | None) -> list:
    try:
        value = json.loads(raw or '[]')
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_booking(row: Booking) -> dict:
    hall = row.hall
    institution = hall.institution if hall else None
    payload = {
        'id': row.id,
        'hall_id': row.hall_id,
        'department_id': row.department_id,
        'user_id': row.user_id,
        'booking_date': _iso(row.booking_date),
        'event_title': row.event_title,
        'event_time': row.event_time,
        'start_time': row.start_time,
        'end_time': row.end_time,
        'status': row.status,
        'rejection_reason': row.rejection_reason,
        'approved_by': row.approved_by,
        'approved_at': _iso(row.approved_at),
        'files_urls': _decode_list(row.files_urls_json),
        'work_status': row.work_status,
        'final_file_url': row.final_file_url,
        'photography_drive_link': row.photography_drive_link,
        'created_at': _iso(row.created_at),
        'updated_at': _iso(row.updated_at),
        'hall_name': hall.name if hall else None,
        'department_name': row.department.short_name if row.department else None,
        'user_name': row.user.full_name if row.user else None,
        'institution_id': hall.institution_id if hall else None,
        'institution_name': institution.name if institution else None,
        'institution_short_name': institution.short_name if institution else None,
    }
    for field in BOOLEAN_FIELDS:
        payload[field] = bool(getattr(row, field))
    for field in TEXT_FIELDS:
        payload[field] = getattr(row, field) or ''
    return payload


def serialize_audit(row: BookingAuditLog) -> dict:
    try:
        details = json.loads(row.details_json or '{}')
    except json.JSONDecodeError:
        details = {}
    return {
        'id': row.id,
        'booking_id': row.booking_id,
        'action': row.action,
        'reason': row.reason,
        'actor_id': row.actor_id,
        'details': details,
        'created_at': _iso(row.created_at),
    }


def _record_audit(
    db: Session,
    booking_id: str,
    action: str,
    *,
    actor: dict,
    reason: str = '',
    details: dict | None = None,
) -> None:
    db.add(
        BookingAuditLog(
            booking_id=booking_id,
            action=action,
            reason=reason or '',
            actor_id=actor.get('user_id'),
            details_json=json.dumps(details or {}, default=str),
        )
    )


def parse_time(value: str | None, field: str) -> str:
    clean = (value or '').strip()
    if not clean:
        raise ValueError(f'{field} is required')
    if not _TIME_RE.match(clean):
        raise ValueError(f'{field} must be in HH:MM format')
    return clean


def _base_query(db: Session, *, eager: bool = True) -> Query:
    query = db.query(Booking).join(Hall, Booking.hall_id == Hall.id)
    if not eager:
        return query
    return query.options(
        joinedload(Booking.hall).joinedload(Hall.institution),
        joinedload(Booking.department),
        joinedload(Booking.user),
    )


def visible_bookings_query(
    db: Session,
    actor: dict,
    *,
    institution_id: str | None = None,
    eager: bool = True,
) -> Query:
    """Bookings the caller may see, before any optional filters."""
    role = actor.get('role')
    query = _base_query(db, eager=eager)
    if role == Role.DEPARTMENT_USER.value:
        return query.filter(Booking.user_id == actor.get('user_id'))
    if role == Role.PRINCIPAL.value:
        return apply_institution_scope(query, actor, Hall.institution_id)
    if role == Role.SUPER_ADMIN.value:
        if institution_id:
            query = query.filter(Hall.institution_id == institution_id)
        return query
    if role in TEAM_ROLES:
        return query.filter(Booking.status == BookingStatus.APPROVED.value)
    raise PermissionError('Forbidden')


def list_booking_rows(
    db: Session,
    actor: dict,
    *,
    status: str | None = None,
    hall_id: str | None = None,
    institution_id: str | None = None,
) -> list[Booking]:
    query = visible_bookings_query(db, actor, institution_id=institution_id)
    if status:
        if status not in {item.value for item in BookingStatus}:
            raise ValueError('Invalid status filter')
        query = query.filter(Booking.status == status)
    if hall_id:
        query = query.filter(Booking.hall_id == hall_id)
    return query.order_by(Booking.booking_date.desc(), Booking.created_at.desc()).all()


def list_bookings(db: Session, actor: dict, **filters) -> list[dict]:
    return [serialize_booking(row) for row in list_booking_rows(db, actor, **filters)]


def get_booking(db: Session, booking_id: str, actor: dict) -> dict:
    row = visible_bookings_query(db, actor).filter(Booking.id == booking_id).first()
    if not row:
        raise LookupError('Booking not found')
    return serialize_booking(row)


def _load_for_change(db: Session, booking_id: str, actor: dict, *, scoped: bool = True) -> Booking:
    row = _base_query(db).filter(Booking.id == booking_id).first()
    if not row:
        raise LookupError('Booking not found')
    if scoped:
        assert_institution_access(actor, row.hall.institution_id if row.hall else None)
    return row


def _resolve_hall(db: Session, hall_id: str, actor: dict) -> Hall:
    hall = db.query(Hall).filter(Hall.id == hall_id).first()
    if not hall:
        raise ValueError('Hall not found')
    if not hall.is_active:
        raise ValueError('Hall is not available for booking')
    actor_institution_id = get_actor_institution_id(actor)
    if actor_institution_id and hall.institution_id != actor_institution_id:
        raise PermissionError('You can only book halls of your institution')
    return hall


def _resolve_department_id(db: Session, actor: dict, requested: str | None) -> str:
    role = actor.get('role')
    if role == Role.DEPARTMENT_USER.value:
        if not actor.get('department_id'):
            raise ValueError('Your account is not linked to a department')
        return actor['department_id']
    if requested:
        department = get_department(db, requested)
        actor_institution_id = get_actor_institution_id(actor)
        # The shared ADMIN department has no institution.
        if actor_institution_id and department.institution_id not in (None, actor_institution_id):
            raise PermissionError('You can only book for departments of your institution')
        return department.id
    if actor.get('department_id'):
        return actor['department_id']
    return get_or_create_admin_department(db).id


def create_booking(
    db: Session,
    actor: dict,
    values: dict,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    role = actor.get('role')
    if role not in BOOKING_ROLES:
        raise PermissionError('Not authorized to book halls')

    hall_id = (values.get('hall_id') or '').strip()
    if not hall_id:
        raise ValueError('hall_id is required')
    booking_date = values.get('booking_date')
    if not isinstance(booking_date, date):
        raise ValueError('booking_date is required')
    event_title = (values.get('event_title') or '').strip()
    if not event_title:
        raise ValueError('event_title is required')
    start_time = parse_time(values.get('start_time'), 'start_time')
    end_time = parse_time(values.get('end_time'), 'end_time')
    if end_time <= start_time:
        raise ValueError('end_time must be after start_time')

    hall = _resolve_hall(db, hall_id, actor)
    if role == Role.DEPARTMENT_USER.value and booking_date < time_provider.today():
        raise ValueError('Cannot book a date in the past')
    department_id = _resolve_department_id(db, actor, values.get('department_id'))

    # Principals and super admins block the hall directly.
    auto_approve = role in ADMIN_ROLES
    row = Booking(
        hall_id=hall.id,
        department_id=department_id,
        user_id=actor['user_id'],
        booking_date=booking_date,
        event_title=event_title,
        event_time=(values.get('event_time') or '').strip() or f'{start_time} - {end_time}',
        start_time=start_time,
        end_time=end_time,
        status=BookingStatus.APPROVED.value if auto_approve else BookingStatus.PENDING.value,
        files_urls_json=json.dumps([str(url) for url in values.get('files_urls') or []]),
        work_status=WorkStatus.PENDING.value,
    )
    if auto_approve:
        row.approved_by = actor['user_id']
        row.approved_at = time_provider.utcnow_naive()
    for field in BOOLEAN_FIELDS:
        setattr(row, field, bool(values.get(field)))
    for field in TEXT_FIELDS:
        setattr(row, field, (values.get(field) or '').strip())

    db.add(row)
    db.flush()
    _record_audit(db, row.id, 'created', actor=actor, details={'status': row.status})
    db.commit()
    logger.info(
        'booking_created booking_id=%s hall_id=%s status=%s actor_id=%s',
        row.id,
        row.hall_id,
        row.status,
        actor.get('user_id'),
    )
    return get_booking(db, row.id, actor)


def update_booking(
    db: Session,
    booking_id: str,
    actor: dict,
    values: dict,
    *,
    reason: str | None,
) -> dict:
    """Edit non-status fields. The reason is required and kept in the audit trail."""
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Forbidden')
    clean_reason = (reason or '').strip()
    if not clean_reason:
        raise ValueError('A reason for the change is required')

    row = _load_for_change(db, booking_id, actor)
    changes: dict = {}
    for field in EDITABLE_FIELDS:
        if values.get(field) is None:
            continue
        value = values[field]
        if field == 'hall_id':
            value = _resolve_hall(db, value, actor).id
        elif field == 'event_title':
            value = value.strip()
            if not value:
                raise ValueError('event_title is required')
        elif field in ('start_time', 'end_time'):
            value = parse_time(value, field)
        elif field in BOOLEAN_FIELDS:
            value = bool(value)
        elif field == 'files_urls':
            field, value = 'files_urls_json', json.dumps([str(url) for url in value])
        elif isinstance(value, str):
            value = value.strip()
        if getattr(row, field) != value:
            changes[field] = value
            setattr(row, field, value)

    if row.start_time and row.end_time and row.end_time <= row.start_time:
        db.rollback()
        raise ValueError('end_time must be after start_time')
    if ('start_time' in changes or 'end_time' in changes) and values.get('event_time') is None:
        row.event_time = f'{row.start_time} - {row.end_time}'

    _record_audit(db, row.id, 'updated', actor=actor, reason=clean_reason, details={'fields': sorted(changes)})
    db.commit()
    logger.info(
        'booking_updated booking_id=%s fields=%s actor_id=%s',
        row.id,
        ','.join(sorted(changes)) or '-',
        actor.get('user_id'),
    )
    return get_booking(db, row.id, actor)


def change_status(
    db: Session,
    booking_id: str,
    actor: dict,
    *,
    status: str,
    rejection_reason: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Only principals and administrators can approve bookings')
    if status not in (BookingStatus.APPROVED.value, BookingStatus.REJECTED.value):
        raise ValueError('Status must be approved or rejected')

    row = _load_for_change(db, booking_id, actor)
    if row.status != BookingStatus.PENDING.value:
        raise BookingStateError(f'Booking has already been {row.status}')
    clean_reason = (rejection_reason or '').strip()
    if status == BookingStatus.REJECTED.value and not clean_reason:
        raise ValueError('A rejection reason is required')

    row.status = status
    row.rejection_reason = clean_reason if status == BookingStatus.REJECTED.value else None
    row.approved_by = actor['user_id']
    row.approved_at = time_provider.utcnow_naive()
    _record_audit(db, row.id, status, actor=actor, reason=clean_reason)
    db.commit()
    logger.info('booking_status_changed booking_id=%s status=%s actor_id=%s', row.id, status, actor.get('user_id'))
    return get_booking(db, row.id, actor)


def delete_booking(db: Session, booking_id: str, actor: dict, *, reason: str | None) -> None:
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Forbidden')
    clean_reason = (reason or '').strip()
    if not clean_reason:
        raise ValueError('A reason for deletion is required')

    row = _load_for_change(db, booking_id, actor)
    snapshot = {
        'event_title': row.event_title,
        'booking_date': _iso(row.booking_date),
        'hall_id': row.hall_id,
        'status': row.status,
        'institution_id': row.hall.institution_id if row.hall else None,
    }
    if row.press_release is not None:
        db.delete(row.press_release)
    _record_audit(db, row.id, 'deleted', actor=actor, reason=clean_reason, details=snapshot)
    db.delete(row)
    db.commit()
    logger.info('booking_deleted booking_id=%s actor_id=%s', booking_id, actor.get('user_id'))


def set_final_design(
    db: Session,
    booking_id: str,
    actor: dict,
    *,
    file_bytes: bytes,
    filename: str,
    base_url: str = '',
) -> dict:
    if actor.get('role') not in DESIGN_ROLES:
        raise PermissionError('Only the designing team can upload final designs')
    row = _load_for_change(db, booking_id, actor, scoped=False)
    if row.status != BookingStatus.APPROVED.value:
        raise BookingStateError('Final designs can only be attached to approved bookings')

    file_url = save_file(file_bytes, filename, base_url=base_url)
    row.final_file_url = file_url
    row.work_status = WorkStatus.COMPLETED.value
    _record_audit(db, row.id, 'final_design', actor=actor, details={'final_file_url': file_url})
    db.commit()
    logger.info('booking_final_design_set booking_id=%s actor_id=%s', row.id, actor.get('user_id'))
    return get_booking(db, row.id, actor)


def set_photography_link(db: Session, booking_id: str, actor: dict, link: str | None) -> dict:
    if actor.get('role') != Role.PHOTOGRAPHY_TEAM.value:
        raise PermissionError('Only the photography team can add drive links')
    clean_link = (link or '').strip()
    if not clean_link:
        raise ValueError('photography_drive_link is required')
    row = _load_for_change(db, booking_id, actor, scoped=False)
    if row.status != BookingStatus.APPROVED.value:
        raise BookingStateError('Drive links can only be added to approved bookings')

    row.photography_drive_link = clean_link
    _record_audit(db, row.id, 'photography_link', actor=actor, details={'photography_drive_link': clean_link})
    db.commit()
    logger.info('booking_photography_link_set booking_id=%s actor_id=%s', row.id, actor.get('user_id'))
    return get_booking(db, row.id, actor)


def get_history(db: Session, booking_id: str, actor: dict) -> list[dict]:
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Forbidden')
    booking = _base_query(db).filter(Booking.id == booking_id).first()
    if booking is not None:
        assert_institution_access(actor, booking.hall.institution_id if booking.hall else None)
    rows = (
        db.query(BookingAuditLog)
        .filter(BookingAuditLog.booking_id == booking_id)
        .order_by(BookingAuditLog.created_at.asc(), BookingAuditLog.id.asc())
        .all()
    )
    if booking is None:
        # Deleted bookings keep their trail; scope it by the snapshot taken at deletion.
        if not rows:
            raise LookupError('Booking not found')
        deleted = [row for row in rows if row.action == 'deleted']
        snapshot = serialize_audit(deleted[-1])['details'] if deleted else {}
        assert_institution_access(actor, snapshot.get('institution_id'))
    return [serialize_audit(row) for row in rows]
