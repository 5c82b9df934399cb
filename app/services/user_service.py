from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Booking, Department, Institution, PressRelease, Role, Setting, User
from app.services.auth_service import VALID_ROLES, hash_password, serialize_profile
from app.services.institution_scope_service import apply_institution_scope, assert_institution_access


logger = logging.getLogger(__name__)

SELF_EDITABLE_FIELDS = ('full_name', 'theme_preference')
ADMIN_EDITABLE_FIELDS = ('full_name', 'theme_preference', 'role', 'department_id', 'institution_id', 'password')


def list_users(db: Session, actor: dict, *, institution_id: str | None = None) -> list[dict]:
    role = actor.get('role')
    if role not in (Role.SUPER_ADMIN.value, Role.PRINCIPAL.value):
        raise PermissionError('Forbidden')
    query = db.query(User)
    if role == Role.SUPER_ADMIN.value:
        if institution_id:
            query = query.filter(User.institution_id == institution_id)
    else:
        query = apply_institution_scope(query, actor, User.institution_id)
    return [serialize_profile(row) for row in query.order_by(User.created_at.desc()).all()]


def get_user(db: Session, user_id: str) -> User:
    row = db.query(User).filter(User.id == user_id).first()
    if not row:
        raise LookupError('User not found')
    return row


def update_user(db: Session, user_id: str, values: dict, *, actor: dict) -> dict:
    row = get_user(db, user_id)
    is_super_admin = actor.get('role') == Role.SUPER_ADMIN.value
    is_self = actor.get('user_id') == row.id
    if not is_super_admin and not is_self:
        raise PermissionError('You can only update your own profile')

    allowed = ADMIN_EDITABLE_FIELDS if is_super_admin else SELF_EDITABLE_FIELDS
    rejected = sorted(key for key, value in values.items() if value is not None and key not in allowed)
    if rejected:
        raise PermissionError(f'Not allowed to change: {", ".join(rejected)}')

    if values.get('full_name') is not None:
        clean_name = values['full_name'].strip()
        if not clean_name:
            raise ValueError('Full name is required')
        row.full_name = clean_name
    if values.get('theme_preference') is not None:
        row.theme_preference = values['theme_preference'].strip() or row.theme_preference
    if values.get('role') is not None:
        role_value = values['role'].strip().lower()
        if role_value not in VALID_ROLES:
            raise ValueError(f'Role must be one of: {", ".join(sorted(VALID_ROLES))}')
        row.role = role_value
    if values.get('department_id') is not None:
        department_id = values['department_id'] or None
        if department_id and not db.query(Department.id).filter(Department.id == department_id).first():
            raise ValueError('Department not found')
        row.department_id = department_id
    if values.get('institution_id') is not None:
        institution_id = values['institution_id'] or None
        if institution_id and not db.query(Institution.id).filter(Institution.id == institution_id).first():
            raise ValueError('Institution not found')
        row.institution_id = institution_id
    if values.get('password'):
        row.password_hash = hash_password(values['password'])

    db.commit()
    db.refresh(row)
    logger.info('user_updated user_id=%s actor_id=%s', row.id, actor.get('user_id'))
    return serialize_profile(row)


def delete_user(db: Session, user_id: str, *, actor: dict) -> None:
    if actor.get('role') != Role.SUPER_ADMIN.value:
        raise PermissionError('Forbidden')
    if actor.get('user_id') == user_id:
        raise ValueError('You cannot delete your own account')
    row = get_user(db, user_id)
    assert_institution_access(actor, row.institution_id)
    if db.query(Booking.id).filter(Booking.user_id == row.id).first():
        raise ValueError('User has bookings and cannot be deleted')
    if db.query(PressRelease.id).filter(PressRelease.user_id == row.id).first():
        raise ValueError('User has press releases and cannot be deleted')

    # Decisions and setting changes stay on record without the account.
    cleared_approvals = (
        db.query(Booking)
        .filter(Booking.approved_by == row.id)
        .update({Booking.approved_by: None}, synchronize_session=False)
    )
    db.query(Setting).filter(Setting.updated_by == row.id).update({Setting.updated_by: None}, synchronize_session=False)
    db.delete(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValueError('User is still referenced and cannot be deleted') from exc
    logger.info(
        'user_deleted user_id=%s actor_id=%s cleared_approvals=%s',
        user_id,
        actor.get('user_id'),
        cleared_approvals,
    )
