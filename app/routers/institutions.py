from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.router_guard import require_super_admin
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    InstitutionCreate,
    InstitutionRead,
    InstitutionUpdate,
)
from app.services.tenancy_service import (
    create_department,
    create_institution,
    delete_department,
    delete_institution,
    list_departments,
    list_institutions,
    update_department,
    update_institution,
)


router = APIRouter(prefix='/api', tags=['Institutions'], route_class=EndpointNameRoute)


@router.get('/institutions', response_model=list[InstitutionRead])
def list_institutions_api(db: Session = Depends(get_db)):
    return list_institutions(db)


@router.post('/institutions', response_model=InstitutionRead, status_code=201)
def create_institution_api(
    payload: InstitutionCreate,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        return create_institution(db, name=payload.name, short_name=payload.short_name, logo_url=payload.logo_url)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put('/institutions/{institution_id}', response_model=InstitutionRead)
def update_institution_api(
    institution_id: str,
    payload: InstitutionUpdate,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        return update_institution(db, institution_id, **payload.model_dump())
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete('/institutions/{institution_id}')
def delete_institution_api(
    institution_id: str,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        delete_institution(db, institution_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'Institution deleted successfully'}


@router.get('/departments', response_model=list[DepartmentRead])
def list_departments_api(institution_id: str | None = Query(default=None), db: Session = Depends(get_db)):
    return list_departments(db, institution_id=institution_id)


@router.post('/departments', response_model=DepartmentRead, status_code=201)
def create_department_api(
    payload: DepartmentCreate,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        return create_department(
            db,
            name=payload.name,
            short_name=payload.short_name,
            institution_id=payload.institution_id,
        )
    except LookupError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put('/departments/{department_id}', response_model=DepartmentRead)
def update_department_api(
    department_id: str,
    payload: DepartmentUpdate,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        return update_department(db, department_id, **payload.model_dump())
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete('/departments/{department_id}')
def delete_department_api(
    department_id: str,
    _: dict = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        delete_department(db, department_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'Department deleted successfully'}
