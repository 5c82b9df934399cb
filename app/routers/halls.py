from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user, require_super_admin
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import HallCreate, HallRead, HallUpdate
from app.services.availability_service import build_month_calendar, occupied_slots
from app.services.hall_service import create_hall, get_hall, list_halls, update_hall


router = APIRouter(prefix='/api/halls', tags=['Halls'], route_class=EndpointNameRoute)


@router.get('', response_model=list[HallRead])
def list_halls_api(
    institution_id: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    return list_halls(db, actor, institution_id=institution_id)


@router.get('/{hall_id}', response_model=HallRead)
def get_hall_api(hall_id: str, actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return get_hall(db, hall_id, actor)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


@router.post('', response_model=HallRead, status_code=201)
def create_hall_api(payload: HallCreate, _: dict = Depends(require_super_admin), db: Session = Depends(get_db)):
    try:
        return create_hall(db, payload.model_dump())
    except LookupError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put('/{hall_id}', response_model=HallRead)
def update_hall_api(
    hall_id: str,
    payload: HallUpdate,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        return update_hall(db, hall_id, payload.model_dump(exclude_unset=True))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get('/{hall_id}/calendar')
def hall_calendar_api(
    hall_id: str,
    month: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        return build_month_calendar(db, hall_id, actor, month=month)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get('/{hall_id}/occupied-slots')
def hall_occupied_slots_api(
    hall_id: str,
    on_date: date = Query(alias='date'),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        return occupied_slots(db, hall_id, actor, on_date=on_date)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
