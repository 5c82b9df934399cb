from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models import Setting


logger = logging.getLogger(__name__)

REGISTRATION_ACTIVE_KEY = 'registration_active'
DEFAULT_SETTINGS: dict[str, Any] = {
    REGISTRATION_ACTIVE_KEY: True,
}


def _decode(raw: str | None) -> Any:
    try:
        return json.loads(raw or 'null')
    except json.JSONDecodeError:
        return raw


def get_setting(db: Session, key: str) -> Any:
    row = db.query(Setting).filter(Setting.setting_key == key).first()
    if not row:
        return DEFAULT_SETTINGS.get(key)
    return _decode(row.setting_value)


def list_settings(db: Session) -> dict[str, Any]:
    payload = dict(DEFAULT_SETTINGS)
    for row in db.query(Setting).order_by(Setting.setting_key.asc()).all():
        payload[row.setting_key] = _decode(row.setting_value)
    return payload


def set_setting(db: Session, key: str, value: Any, *, updated_by: str | None = None) -> Any:
    clean_key = (key or '').strip()
    if not clean_key:
        raise ValueError('Setting key is required')
    if clean_key == REGISTRATION_ACTIVE_KEY and not isinstance(value, bool):
        raise ValueError('registration_active must be true or false')

    row = db.query(Setting).filter(Setting.setting_key == clean_key).first()
    if not row:
        row = Setting(setting_key=clean_key)
        db.add(row)
    row.setting_value = json.dumps(value)
    row.updated_by = updated_by
    db.commit()
    logger.info('setting_updated key=%s actor_id=%s', clean_key, updated_by)
    return value


def ensure_default_settings(db: Session) -> list[str]:
    created = []
    for key, value in DEFAULT_SETTINGS.items():
        if db.query(Setting).filter(Setting.setting_key == key).first():
            continue
        db.add(Setting(setting_key=key, setting_value=json.dumps(value)))
        created.append(key)
    if created:
        db.commit()
    return created


def is_registration_active(db: Session) -> bool:
    return bool(get_setting(db, REGISTRATION_ACTIVE_KEY))
