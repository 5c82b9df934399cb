from __future__ import annotations

from typing import Iterable

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.models import Role, User
from app.services.auth_service import validate_session_token


ADMIN_ROLES = frozenset({Role.PRINCIPAL.value, Role.SUPER_ADMIN.value})


def resolve_token(request: Request) -> str | None:
    authorization = request.headers.get('authorization', '')
    if authorization.lower().startswith('bearer '):
        return authorization[7:].strip() or None
    return None


def _actor_from_user(user: User) -> dict:
    return {
        'user_id': user.id,
        'role': str(user.role or '').strip().lower(),
        'department_id': user.department_id,
        'institution_id': user.institution_id,
        'email': user.email,
    }


def require_auth_user(request: Request, db: Session = Depends(get_db)) -> dict:
    token = resolve_token(request)
    if not token:
        raise HTTPException(status_code=401, detail='Unauthorized: No token provided')
    session = validate_session_token(token)
    if not session:
        raise HTTPException(status_code=401, detail='Unauthorized: Invalid token')
    # Role and institution come from the row so admin edits apply without re-login.
    user = db.query(User).filter(User.id == session['user_id']).first()
    if not user:
        raise HTTPException(status_code=401, detail='Unauthorized: Account no longer exists')
    request.state.actor_id = user.id
    return _actor_from_user(user)


def lenient_auth_user(request: Request, db: Session = Depends(get_db)) -> dict | None:
    """Caller when the token is valid; an expired, revoked or stale token counts as anonymous."""
    token = resolve_token(request)
    session = validate_session_token(token) if token else None
    if not session:
        return None
    user = db.query(User).filter(User.id == session['user_id']).first()
    if not user:
        return None
    request.state.actor_id = user.id
    return _actor_from_user(user)


def require_role(user: dict, allowed_roles: set[str] | Iterable[str]) -> None:
    normalized = {str(role).strip().lower() for role in allowed_roles}
    if str(user.get('role') or '').strip().lower() not in normalized:
        raise HTTPException(status_code=403, detail='Forbidden')


def require_super_admin(user: dict = Depends(require_auth_user)) -> dict:
    require_role(user, {Role.SUPER_ADMIN.value})
    return user


def require_admin(user: dict = Depends(require_auth_user)) -> dict:
    require_role(user, ADMIN_ROLES)
    return user
