import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.models import Role, User
from app.services.auth_service import find_user_by_email, hash_password
from app.services.settings_service import ensure_default_settings
from app.services.tenancy_service import get_or_create_admin_department


logger = logging.getLogger(__name__)


def _seed_super_admin_if_needed(db: Session, department_id: str) -> dict:
    email = (settings.seed_admin_email or '').strip().lower()
    if not email:
        return {'seeded': False, 'reason': 'no_seed_admin_email'}
    if find_user_by_email(db, email):
        return {'seeded': False, 'reason': 'already_exists'}
    if db.query(User.id).filter(User.role == Role.SUPER_ADMIN.value).first():
        return {'seeded': False, 'reason': 'super_admin_present'}
    if not settings.seed_admin_password:
        logger.warning('super_admin_seed_skipped missing_seed_admin_password')
        return {'seeded': False, 'reason': 'no_seed_admin_password'}

    user = User(
        email=email,
        password_hash=hash_password(settings.seed_admin_password),
        full_name='Super Admin',
        role=Role.SUPER_ADMIN.value,
        department_id=department_id,
        institution_id=None,
    )
    db.add(user)
    db.commit()
    logger.warning('Default super admin seeded - change the password after setup (email=%s)', email)
    return {'seeded': True, 'email': email}


def run_bootstrap(db: Session) -> dict:
    """Idempotent start-up seed: ADMIN department, default settings, first super admin."""
    department = get_or_create_admin_department(db)
    created_settings = ensure_default_settings(db)
    admin_result = _seed_super_admin_if_needed(db, department.id)
    logger.info(
        'bootstrap_complete admin_department_id=%s settings_created=%s admin_seeded=%s',
        department.id,
        len(created_settings),
        admin_result.get('seeded'),
    )
    return {
        'admin_department_id': department.id,
        'settings_created': created_settings,
        'super_admin': admin_result,
    }
