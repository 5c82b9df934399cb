from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Booking, Department, Hall, Institution, User


logger = logging.getLogger(__name__)

ADMIN_DEPARTMENT_SHORT_NAME = 'ADMIN'


def _normalize_name(value: str | None) -> str:
    return (value or '').strip()


def get_institution(db: Session, institution_id: str) -> Institution:
    row = db.query(Institution).filter(Institution.id == institution_id).first()
    if not row:
        raise LookupError('Institution not found')
    return row


def list_institutions(db: Session) -> list[Institution]:
    return db.query(Institution).order_by(Institution.name.asc()).all()


def create_institution(db: Session, *, name: str, short_name: str = '', logo_url: str = '') -> Institution:
    clean_name = _normalize_name(name)
    if not clean_name:
        raise ValueError('Institution name is required')
    exists = db.query(Institution).filter(func.lower(Institution.name) == clean_name.lower()).first()
    if exists:
        raise ValueError('Institution name already exists')
    row = Institution(name=clean_name, short_name=_normalize_name(short_name), logo_url=(logo_url or '').strip())
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('institution_created institution_id=%s', row.id)
    return row


def update_institution(
    db: Session,
    institution_id: str,
    *,
    name: str | None = None,
    short_name: str | None = None,
    logo_url: str | None = None,
) -> Institution:
    row = get_institution(db, institution_id)
    if name is not None:
        clean_name = _normalize_name(name)
        if not clean_name:
            raise ValueError('Institution name is required')
        clash = (
            db.query(Institution)
            .filter(func.lower(Institution.name) == clean_name.lower(), Institution.id != row.id)
            .first()
        )
        if clash:
            raise ValueError('Institution name already exists')
        row.name = clean_name
    if short_name is not None:
        row.short_name = _normalize_name(short_name)
    if logo_url is not None:
        row.logo_url = logo_url.strip()
    db.commit()
    db.refresh(row)
    return row


def delete_institution(db: Session, institution_id: str) -> None:
    row = get_institution(db, institution_id)
    in_use = (
        db.query(Department.id).filter(Department.institution_id == row.id).first()
        or db.query(Hall.id).filter(Hall.institution_id == row.id).first()
        or db.query(User.id).filter(User.institution_id == row.id).first()
    )
    if in_use:
        raise ValueError('Institution still has departments, halls or users')
    db.delete(row)
    db.commit()
    logger.info('institution_deleted institution_id=%s', institution_id)


def get_department(db: Session, department_id: str) -> Department:
    row = db.query(Department).filter(Department.id == department_id).first()
    if not row:
        raise LookupError('Department not found')
    return row


def list_departments(db: Session, *, institution_id: str | None = None) -> list[Department]:
    query = db.query(Department)
    if institution_id:
        query = query.filter(Department.institution_id == institution_id)
    return query.order_by(Department.name.asc()).all()


def create_department(db: Session, *, name: str, short_name: str, institution_id: str | None = None) -> Department:
    clean_name = _normalize_name(name)
    clean_short = _normalize_name(short_name).upper()
    if not clean_name or not clean_short:
        raise ValueError('Department name and short name are required')
    if institution_id:
        get_institution(db, institution_id)
    exists = (
        db.query(Department)
        .filter(
            Department.institution_id == institution_id,
            func.lower(Department.short_name) == clean_short.lower(),
        )
        .first()
    )
    if exists:
        raise ValueError('Department already exists')
    row = Department(name=clean_name, short_name=clean_short, institution_id=institution_id or None)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('department_created department_id=%s institution_id=%s', row.id, row.institution_id)
    return row


def update_department(
    db: Session,
    department_id: str,
    *,
    name: str | None = None,
    short_name: str | None = None,
    institution_id: str | None = None,
) -> Department:
    row = get_department(db, department_id)
    if name is not None:
        clean_name = _normalize_name(name)
        if not clean_name:
            raise ValueError('Department name is required')
        row.name = clean_name
    if short_name is not None:
        clean_short = _normalize_name(short_name).upper()
        if not clean_short:
            raise ValueError('Department short name is required')
        row.short_name = clean_short
    if institution_id is not None:
        if institution_id:
            get_institution(db, institution_id)
        row.institution_id = institution_id or None
    db.commit()
    db.refresh(row)
    return row


def delete_department(db: Session, department_id: str) -> None:
    row = get_department(db, department_id)
    in_use = (
        db.query(Booking.id).filter(Booking.department_id == row.id).first()
        or db.query(User.id).filter(User.department_id == row.id).first()
    )
    if in_use:
        raise ValueError('Department still has users or bookings')
    db.delete(row)
    db.commit()
    logger.info('department_deleted department_id=%s', department_id)


def get_or_create_admin_department(db: Session) -> Department:
    row = db.query(Department).filter(Department.short_name == ADMIN_DEPARTMENT_SHORT_NAME).first()
    if row:
        return row
    row = Department(name='Administrative Office', short_name=ADMIN_DEPARTMENT_SHORT_NAME, institution_id=None)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info('admin_department_created department_id=%s', row.id)
    return row
