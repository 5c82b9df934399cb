from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user, require_super_admin
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import SettingUpdate
from app.services.settings_service import REGISTRATION_ACTIVE_KEY, list_settings, set_setting


router = APIRouter(prefix='/api/settings', tags=['Settings'], route_class=EndpointNameRoute)


@router.get('')
def list_settings_api(_: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    return list_settings(db)


@router.get('/registration_active')
def registration_status_api(db: Session = Depends(get_db)):
    return {'value': bool(list_settings(db).get(REGISTRATION_ACTIVE_KEY))}


@router.put('/{key}')
def update_setting_api(
    key: str,
    payload: SettingUpdate,
    actor: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        value = set_setting(db, key, payload.value, updated_by=actor['user_id'])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'key': key, 'value': value}
