from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.router_guard import require_admin, require_auth_user
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import UserUpdateRequest
from app.services.user_service import delete_user, list_users, update_user


router = APIRouter(prefix='/api/users', tags=['Users'], route_class=EndpointNameRoute)


@router.get('')
def list_users_api(
    institution_id: str | None = Query(default=None),
    actor: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return list_users(db, actor, institution_id=institution_id)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


@router.put('/{user_id}')
def update_user_api(
    user_id: str,
    payload: UserUpdateRequest,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        user = update_user(db, user_id, payload.model_dump(exclude_unset=True), actor=actor)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'User updated successfully', 'user': user}


@router.delete('/{user_id}')
def delete_user_api(
    user_id: str,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        delete_user(db, user_id, actor=actor)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'User deleted successfully'}
