from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import secrets
import threading
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Department, Role, User
from app.services.settings_service import is_registration_active


_REVOKED_TOKENS: set[str] = set()
_TOKENS_LOCK = threading.RLock()
logger = logging.getLogger(__name__)

VALID_ROLES = {role.value for role in Role}


class AuthError(ValueError):
    """Raised when credentials or a session token cannot be accepted."""


def _normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def _mask_email(email: str) -> str:
    clean = _normalize_email(email)
    local, _, domain = clean.partition('@')
    if not domain:
        return '***'
    return f'{local[:2]}***@{domain}'


def hash_password(password: str) -> str:
    if len(password or '') < settings.auth_min_password_length:
        raise ValueError(f'Password must be at least {settings.auth_min_password_length} characters')
    salt = secrets.token_hex(16)
    iterations = 120000
    derived = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), iterations)
    return f'pbkdf2_sha256${iterations}${salt}${derived.hex()}'


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, iter_raw, salt, digest_hex = password_hash.split('$', 3)
        if algo != 'pbkdf2_sha256':
            return False
        iterations = int(iter_raw)
        derived = hashlib.pbkdf2_hmac('sha256', (password or '').encode('utf-8'), salt.encode('utf-8'), iterations).hex()
        return hmac.compare_digest(derived, digest_hex)
    except (ValueError, AttributeError):
        return False


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def _b64url_decode(value: str) -> bytes:
    padding = '=' * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode('ascii'))


def _encode_jwt(payload: dict) -> str:
    header = {'alg': 'HS256', 'typ': 'JWT'}
    header_part = _b64url_encode(json.dumps(header, separators=(',', ':')).encode('utf-8'))
    payload_part = _b64url_encode(json.dumps(payload, separators=(',', ':')).encode('utf-8'))
    signing_input = f'{header_part}.{payload_part}'.encode('ascii')
    signature = hmac.new(settings.auth_secret.encode('utf-8'), signing_input, hashlib.sha256).digest()
    return f'{header_part}.{payload_part}.{_b64url_encode(signature)}'


def _decode_jwt(token: str) -> dict | None:
    try:
        header_part, payload_part, signature_part = token.split('.')
    except ValueError:
        return None

    try:
        signing_input = f'{header_part}.{payload_part}'.encode('ascii')
        provided_signature = _b64url_decode(signature_part)
    except (ValueError, UnicodeEncodeError):
        return None
    expected_signature = hmac.new(settings.auth_secret.encode('utf-8'), signing_input, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_signature, expected_signature):
        return None

    try:
        payload = json.loads(_b64url_decode(payload_part).decode('utf-8'))
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None
    return payload


def find_user_by_email(db: Session, email: str) -> User | None:
    clean = _normalize_email(email)
    if not clean:
        return None
    return db.query(User).filter(func.lower(User.email) == clean).first()


def issue_session_token(user: User, *, time_provider: TimeProvider = default_time_provider) -> str:
    now = time_provider.now()
    expires_at = now + timedelta(hours=settings.auth_session_expiry_hours)
    token = _encode_jwt(
        {
            'sub': user.id,
            'role': user.role,
            'department_id': user.department_id,
            'institution_id': user.institution_id,
            'iat': int(now.timestamp()),
            'exp': int(expires_at.timestamp()),
        }
    )
    with _TOKENS_LOCK:
        _REVOKED_TOKENS.discard(token)
    return token


def serialize_profile(user: User) -> dict:
    department = user.department
    institution = user.institution
    return {
        'id': user.id,
        'email': user.email,
        'full_name': user.full_name,
        'role': user.role,
        'department_id': user.department_id,
        'institution_id': user.institution_id,
        'theme_preference': user.theme_preference,
        'created_at': user.created_at.isoformat() if user.created_at else None,
        'department': (
            {'id': department.id, 'name': department.name, 'short_name': department.short_name}
            if department
            else None
        ),
        'institution': (
            {
                'id': institution.id,
                'name': institution.name,
                'short_name': institution.short_name,
                'logo_url': institution.logo_url,
            }
            if institution
            else None
        ),
    }


def login(
    db: Session,
    email: str,
    password: str,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    user = find_user_by_email(db, email)
    if not user:
        logger.warning('auth_login_unknown_user email=%s', _mask_email(email))
        raise AuthError('User not found')
    if not user.password_hash or not _verify_password(password, user.password_hash):
        logger.warning('auth_login_invalid_password email=%s', _mask_email(email))
        raise AuthError('Invalid password')
    token = issue_session_token(user, time_provider=time_provider)
    logger.info('auth_login_success email=%s role=%s', _mask_email(user.email), user.role)
    return {'token': token, 'user': serialize_profile(user)}


def register_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str,
    role: str | None = None,
    department_id: str | None = None,
    institution_id: str | None = None,
    actor: dict | None = None,
) -> User:
    """Create a user.

    Super admins may create any role. Anonymous callers self-register as
    department users, and only while the ``registration_active`` setting is on.
    """
    is_admin = bool(actor) and actor.get('role') == Role.SUPER_ADMIN.value
    if actor and not is_admin:
        raise PermissionError('Only administrators can create accounts')

    clean_email = _normalize_email(email)
    if not clean_email or '@' not in clean_email:
        raise ValueError('A valid email is required')
    clean_name = (full_name or '').strip()
    if not clean_name:
        raise ValueError('Full name is required')

    if is_admin:
        role_value = (role or Role.DEPARTMENT_USER.value).strip().lower()
        if role_value not in VALID_ROLES:
            raise ValueError(f'Role must be one of: {", ".join(sorted(VALID_ROLES))}')
    else:
        if not is_registration_active(db):
            raise PermissionError('Registration is currently closed')
        role_value = Role.DEPARTMENT_USER.value
        if not department_id:
            raise ValueError('Department is required')

    department = None
    if department_id:
        department = db.query(Department).filter(Department.id == department_id).first()
        if not department:
            raise ValueError('Department not found')
    resolved_institution_id = institution_id if is_admin else None
    if department and not resolved_institution_id:
        resolved_institution_id = department.institution_id

    if find_user_by_email(db, clean_email):
        raise ValueError('User already exists')

    user = User(
        email=clean_email,
        password_hash=hash_password(password),
        full_name=clean_name,
        role=role_value,
        department_id=department.id if department else None,
        institution_id=resolved_institution_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        'auth_user_registered user_id=%s role=%s by_admin=%s',
        user.id,
        user.role,
        is_admin,
    )
    return user


def change_password(db: Session, user_id: str, old_password: str, new_password: str) -> None:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise LookupError('User not found')
    if not _verify_password(old_password, user.password_hash or ''):
        raise ValueError('Incorrect old password')
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info('auth_password_changed user_id=%s', user.id)


def validate_session_token(
    token: str | None,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> dict | None:
    if not token:
        return None
    with _TOKENS_LOCK:
        if token in _REVOKED_TOKENS:
            return None

    payload = _decode_jwt(token)
    if not payload:
        return None

    user_id = payload.get('sub')
    role = payload.get('role')
    if not user_id or role not in VALID_ROLES:
        return None
    expires_at = int(payload.get('exp') or 0)
    if expires_at and expires_at <= int(time_provider.now().timestamp()):
        return None

    return {
        'user_id': str(user_id),
        'role': role,
        'department_id': payload.get('department_id'),
        'institution_id': payload.get('institution_id'),
    }


def clear_session_token(token: str | None) -> None:
    if not token:
        return
    with _TOKENS_LOCK:
        _REVOKED_TOKENS.add(token)
