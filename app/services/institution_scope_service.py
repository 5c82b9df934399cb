from __future__ import annotations

from sqlalchemy.orm import Query

from app.models import Role


def get_actor_institution_id(user: dict | None) -> str | None:
    """Institution the caller is confined to; ``None`` means system-wide."""
    if not user:
        return None
    if str(user.get('role') or '').lower() == Role.SUPER_ADMIN.value:
        return None
    value = str(user.get('institution_id') or '').strip()
    return value or None


def apply_institution_scope(query: Query, user: dict | None, column):
    institution_id = get_actor_institution_id(user)
    if institution_id is None:
        return query
    return query.filter(column == institution_id)


def can_access_institution(user: dict | None, entity_institution_id: str | None) -> bool:
    institution_id = get_actor_institution_id(user)
    if institution_id is None:
        return True
    return str(entity_institution_id or '') == institution_id


def assert_institution_access(user: dict | None, entity_institution_id: str | None) -> None:
    if not can_access_institution(user, entity_institution_id):
        raise PermissionError('Record belongs to another institution')
