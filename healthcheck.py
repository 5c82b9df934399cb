import os
import sys
import uuid

import httpx
from alembic.config import Config
from alembic.script import ScriptDirectory
from alembic.runtime.migration import MigrationContext
from sqlalchemy import text

from app.config import settings
from app.db import SessionLocal, engine
from app.models import Booking, BookingAuditLog, Hall, Role, User
from app.services.settings_service import REGISTRATION_ACTIVE_KEY, list_settings
from app.services.storage_service import upload_root


GREEN = '\033[32m'
RED = '\033[31m'
RESET = '\033[0m'


def run_check(name, fn):
    try:
        message = fn() or ''
        suffix = f' - {message}' if message else ''
        print(f'{GREEN}PASS{RESET} {name}{suffix}')
        return True
    except Exception as exc:
        print(f'{RED}FAIL{RESET} {name} - {exc}')
        return False


def check_db_connectivity_and_write():
    with engine.begin() as conn:
        conn.execute(text('SELECT 1'))
        conn.execute(text('CREATE TABLE IF NOT EXISTS _healthcheck_probe (id INTEGER PRIMARY KEY, note TEXT)'))
        conn.execute(text("INSERT INTO _healthcheck_probe (note) VALUES ('probe')"))
        conn.execute(text("DELETE FROM _healthcheck_probe WHERE note='probe'"))
        conn.execute(text('DROP TABLE IF EXISTS _healthcheck_probe'))
    return 'connect + write ok'


def check_alembic_head():
    cfg = Config('alembic.ini')
    script = ScriptDirectory.from_config(cfg)
    heads = set(script.get_heads())
    if not heads:
        raise RuntimeError('No alembic heads found in repository')

    with engine.connect() as conn:
        current = MigrationContext.configure(conn).get_current_revision()

    if current is None:
        raise RuntimeError('No migration version in DB (run alembic upgrade head)')
    if current not in heads:
        raise RuntimeError(f'DB revision {current} is not at head {sorted(heads)}')
    return f'current={current}'


def check_required_env():
    required = {
        'DATABASE_URL or DB_HOST': settings.sqlalchemy_database_url,
        'AUTH_SECRET': settings.auth_secret,
        'FRONTEND_URL': settings.frontend_url,
        'UPLOAD_DIR': settings.upload_dir,
    }
    missing = [key for key, value in required.items() if not str(value).strip()]
    if missing:
        raise RuntimeError(f'Missing env vars: {", ".join(missing)}')
    if settings.app_env != 'local' and settings.auth_secret == 'change-me':
        raise RuntimeError('AUTH_SECRET still uses the development default')
    return 'all required vars present'


def check_upload_dir_writable():
    root = upload_root()
    os.makedirs(root, exist_ok=True)
    probe = os.path.join(root, f'.healthcheck-{uuid.uuid4().hex}')
    with open(probe, 'wb') as handle:
        handle.write(b'probe')
    os.remove(probe)
    return root


def check_settings_loaded():
    db = SessionLocal()
    try:
        values = list_settings(db)
        if REGISTRATION_ACTIVE_KEY not in values:
            raise RuntimeError(f'Missing setting {REGISTRATION_ACTIVE_KEY}')
        return f'{REGISTRATION_ACTIVE_KEY}={values[REGISTRATION_ACTIVE_KEY]}'
    finally:
        db.close()


def check_super_admin_present():
    db = SessionLocal()
    try:
        count = db.query(User).filter(User.role == Role.SUPER_ADMIN.value).count()
        if not count:
            raise RuntimeError('No super_admin account (set SEED_ADMIN_PASSWORD and run bootstrap.py)')
        return f'super_admins={count}'
    finally:
        db.close()


def check_booking_tables_accessible():
    db = SessionLocal()
    try:
        halls = db.query(Hall).filter(Hall.is_active.is_(True)).count()
        _ = db.query(Booking).limit(1).all()
        _ = db.query(BookingAuditLog).limit(1).all()
        return f'active_halls={halls}'
    finally:
        db.close()


def check_api_health():
    base_url = (settings.public_base_url or 'http://127.0.0.1:8000').rstrip('/')
    res = httpx.get(f'{base_url}/api/health', timeout=8)
    if res.status_code != 200:
        raise RuntimeError(f'HTTP {res.status_code} from {base_url}')
    payload = res.json()
    if payload.get('status') != 'ok':
        raise RuntimeError(f'API responded not ok: {payload}')
    return f'{base_url} ok'


def main():
    checks = [
        ('Database connectivity and write access', check_db_connectivity_and_write),
        ('Alembic migration status at head', check_alembic_head),
        ('Required environment variables present', check_required_env),
        ('Upload directory writable', check_upload_dir_writable),
        ('Settings loaded', check_settings_loaded),
        ('Super admin account present', check_super_admin_present),
        ('Booking tables accessible', check_booking_tables_accessible),
        ('API health endpoint reachable', check_api_health),
    ]

    all_ok = True
    for name, fn in checks:
        all_ok = run_check(name, fn) and all_ok

    if not all_ok:
        sys.exit(1)
    sys.exit(0)


if __name__ == '__main__':
    main()
