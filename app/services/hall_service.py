from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.models import Hall, Role
from app.services.institution_scope_service import apply_institution_scope, assert_institution_access
from app.services.tenancy_service import get_institution


logger = logging.getLogger(__name__)

HALL_FIELDS = (
    'name',
    'description',
    'image_url',
    'stage_size',
    'seating_capacity',
    'hall_type',
    'is_active',
    'has_ac',
    'has_sound_system',
    'institution_id',
)


def list_halls(db: Session, user: dict, *, institution_id: str | None = None) -> list[Hall]:
    query = db.query(Hall)
    if user.get('role') == Role.SUPER_ADMIN.value:
        if institution_id:
            query = query.filter(Hall.institution_id == institution_id)
    else:
        query = query.filter(Hall.is_active.is_(True))
        query = apply_institution_scope(query, user, Hall.institution_id)
    return query.order_by(Hall.name.asc()).all()


def get_hall(db: Session, hall_id: str, user: dict | None = None) -> Hall:
    row = db.query(Hall).filter(Hall.id == hall_id).first()
    if not row:
        raise LookupError('Hall not found')
    if user is not None:
        assert_institution_access(user, row.institution_id)
    return row


def _apply_fields(db: Session, row: Hall, values: dict) -> None:
    for field in HALL_FIELDS:
        if field not in values or values[field] is None:
            continue
        value = values[field]
        if field == 'name':
            value = (value or '').strip()
            if not value:
                raise ValueError('Hall name is required')
        if field == 'seating_capacity' and int(value) < 0:
            raise ValueError('Seating capacity cannot be negative')
        if field == 'institution_id' and value:
            get_institution(db, value)
        setattr(row, field, value)


def create_hall(db: Session, values: dict) -> Hall:
    if not (values.get('name') or '').strip():
        raise ValueError('Hall name is required')
    row = Hall()
    _apply_fields(db, row, values)
    if row.is_active is None:
        row.is_active = True
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('hall_created hall_id=%s institution_id=%s', row.id, row.institution_id)
    return row


def update_hall(db: Session, hall_id: str, values: dict) -> Hall:
    row = get_hall(db, hall_id)
    _apply_fields(db, row, values)
    db.commit()
    db.refresh(row)
    logger.info('hall_updated hall_id=%s is_active=%s', row.id, row.is_active)
    return row
