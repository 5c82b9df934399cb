from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.services.dashboard_service import dashboard_stats
from app.services.press_release_service import overdue_press_releases


router = APIRouter(prefix='/api', tags=['Dashboard'], route_class=EndpointNameRoute)


@router.get('/dashboard/stats')
def dashboard_stats_api(
    institution_id: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        return dashboard_stats(db, actor, institution_id=institution_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


@router.get('/notifications/press-release-overdue')
def press_release_overdue_api(actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return overdue_press_releases(db, actor)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
