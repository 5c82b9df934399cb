from __future__ import annotations

import json
import logging
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, joinedload

from app.config import settings
from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Booking, BookingStatus, Hall, PressRelease, PressReleaseStatus, Role
from app.services.booking_service import ADMIN_ROLES, serialize_booking, visible_bookings_query
from app.services.institution_scope_service import apply_institution_scope, assert_institution_access
from app.services.storage_service import discard_file, save_file, validate_upload


logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = ('english_writeup', 'tamil_writeup', 'photo_description')
TEAM_VIEW_ROLES = {Role.PRESS_RELEASE_TEAM.value, Role.SUPER_ADMIN.value}
VALID_STATUSES = {item.value for item in PressReleaseStatus}


class DuplicateSubmissionError(ValueError):
    """Raised when a press release already exists for the booking."""


def _decode_photos(raw: str | None) -> list:
    try:
        value = json.loads(raw or '[]')
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


def serialize_press_release(row: PressRelease) -> dict:
    booking = row.booking
    hall = booking.hall if booking else None
    institution = hall.institution if hall else None
    return {
        'id': row.id,
        'booking_id': row.booking_id,
        'user_id': row.user_id,
        'department_id': row.department_id,
        'coordinator_name': row.coordinator_name,
        'event_title': row.event_title,
        'event_date': row.event_date.isoformat() if row.event_date else None,
        'english_writeup': row.english_writeup,
        'tamil_writeup': row.tamil_writeup,
        'photo_description': row.photo_description,
        'photos': _decode_photos(row.photos_json),
        'status': row.status,
        'created_at': row.created_at.isoformat() if row.created_at else None,
        'department_name': row.department.short_name if row.department else None,
        'user_name': row.user.full_name if row.user else None,
        'hall_name': hall.name if hall else None,
        'event_time': booking.event_time if booking else None,
        'institution_id': hall.institution_id if hall else None,
        'institution_name': institution.name if institution else None,
    }


def _press_release_query(db: Session) -> Query:
    return (
        db.query(PressRelease)
        .join(Booking, PressRelease.booking_id == Booking.id)
        .join(Hall, Booking.hall_id == Hall.id)
        .options(
            joinedload(PressRelease.booking).joinedload(Booking.hall).joinedload(Hall.institution),
            joinedload(PressRelease.department),
            joinedload(PressRelease.user),
        )
    )


def _awaiting_submission(db: Session, actor: dict, *, today: date) -> list[Booking]:
    return (
        visible_bookings_query(db, actor)
        .outerjoin(PressRelease, PressRelease.booking_id == Booking.id)
        .filter(
            Booking.user_id == actor.get('user_id'),
            Booking.status == BookingStatus.APPROVED.value,
            Booking.booking_date <= today,
            PressRelease.id.is_(None),
        )
        .order_by(Booking.booking_date.desc())
        .all()
    )


def pending_press_releases(
    db: Session,
    actor: dict,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> list[dict]:
    """The caller's approved, already-held events that still lack a press release."""
    rows = _awaiting_submission(db, actor, today=time_provider.today())
    return [serialize_booking(row) for row in rows]


def overdue_press_releases(
    db: Session,
    actor: dict,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> list[dict]:
    today = time_provider.today()
    payload = []
    for row in _awaiting_submission(db, actor, today=today):
        days_overdue = (today - row.booking_date).days
        if days_overdue < settings.press_release_overdue_days:
            continue
        item = serialize_booking(row)
        item['days_overdue'] = days_overdue
        payload.append(item)
    return payload


def create_press_release(
    db: Session,
    actor: dict,
    *,
    booking_id: str,
    coordinator_name: str,
    event_title: str | None = None,
    event_date: date | None = None,
    documents: dict[str, tuple[bytes, str]] | None = None,
    photos: list[tuple[bytes, str]] | None = None,
    base_url: str = '',
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    """Store the submission files and record the press release.

    ``documents`` maps each of DOCUMENT_FIELDS to ``(bytes, filename)``;
    ``photos`` is a list of the same pairs.
    """
    if actor.get('role') != Role.DEPARTMENT_USER.value:
        raise PermissionError('Only department users can submit press releases')
    clean_coordinator = (coordinator_name or '').strip()
    if not clean_coordinator:
        raise ValueError('coordinator_name is required')
    photos = photos or []
    if len(photos) > settings.press_release_max_photos:
        raise ValueError(f'At most {settings.press_release_max_photos} photos can be uploaded')

    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking or booking.user_id != actor.get('user_id'):
        raise LookupError('Booking not found')
    if booking.status != BookingStatus.APPROVED.value:
        raise ValueError('Press releases can only be submitted for approved bookings')
    if booking.booking_date > time_provider.today():
        raise ValueError('Press releases can be submitted once the event has taken place')
    if db.query(PressRelease.id).filter(PressRelease.booking_id == booking.id).first():
        raise DuplicateSubmissionError('A press release has already been submitted for this booking')

    documents = {field: item for field, item in (documents or {}).items() if field in DOCUMENT_FIELDS and item}
    for content, _ in [*documents.values(), *photos]:
        validate_upload(content)

    saved_urls: list[str] = []

    def _store(content: bytes, filename: str) -> str:
        url = save_file(content, filename, base_url=base_url)
        saved_urls.append(url)
        return url

    try:
        stored = {field: None for field in DOCUMENT_FIELDS}
        for field, (content, filename) in documents.items():
            stored[field] = _store(content, filename)
        photo_urls = [_store(content, filename) for content, filename in photos]

        row = PressRelease(
            booking_id=booking.id,
            user_id=actor['user_id'],
            department_id=booking.department_id,
            coordinator_name=clean_coordinator,
            event_title=(event_title or '').strip() or booking.event_title,
            event_date=event_date or booking.booking_date,
            photos_json=json.dumps(photo_urls),
            status=PressReleaseStatus.PENDING.value,
            **stored,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateSubmissionError('A press release has already been submitted for this booking') from exc
    except Exception:
        for url in saved_urls:
            discard_file(url)
        raise
    logger.info(
        'press_release_submitted press_release_id=%s booking_id=%s photos=%s',
        row.id,
        booking.id,
        len(photo_urls),
    )
    return serialize_press_release(_press_release_query(db).filter(PressRelease.id == row.id).one())


def list_own_press_releases(db: Session, actor: dict) -> list[dict]:
    rows = (
        _press_release_query(db)
        .filter(PressRelease.user_id == actor.get('user_id'))
        .order_by(PressRelease.created_at.desc())
        .all()
    )
    return [serialize_press_release(row) for row in rows]


def list_press_releases_for_review(db: Session, actor: dict, *, status: str | None = None) -> list[dict]:
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Forbidden')
    query = apply_institution_scope(_press_release_query(db), actor, Hall.institution_id)
    if status and status != 'all':
        if status not in VALID_STATUSES:
            raise ValueError('Invalid status filter')
        query = query.filter(PressRelease.status == status)
    return [serialize_press_release(row) for row in query.order_by(PressRelease.created_at.desc()).all()]


def set_press_release_status(db: Session, press_release_id: str, actor: dict, *, status: str) -> dict:
    if actor.get('role') not in ADMIN_ROLES:
        raise PermissionError('Forbidden')
    if status not in VALID_STATUSES:
        raise ValueError('Status must be pending, approved or rejected')
    row = _press_release_query(db).filter(PressRelease.id == press_release_id).first()
    if not row:
        raise LookupError('Press release not found')
    assert_institution_access(actor, row.booking.hall.institution_id if row.booking and row.booking.hall else None)
    row.status = status
    db.commit()
    logger.info(
        'press_release_status_changed press_release_id=%s status=%s actor_id=%s',
        row.id,
        status,
        actor.get('user_id'),
    )
    return serialize_press_release(row)


def list_approved_for_team(db: Session, actor: dict) -> list[dict]:
    if actor.get('role') not in TEAM_VIEW_ROLES:
        raise PermissionError('Forbidden')
    rows = (
        _press_release_query(db)
        .filter(PressRelease.status == PressReleaseStatus.APPROVED.value)
        .order_by(PressRelease.event_date.desc())
        .all()
    )
    return [serialize_press_release(row) for row in rows]
