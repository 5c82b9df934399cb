from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.router_guard import lenient_auth_user, require_auth_user, resolve_token
from app.db import get_db
from app.models import User
from app.route_logging import EndpointNameRoute
from app.schemas import ChangePasswordRequest, LoginRequest, RegisterRequest
from app.services.auth_service import (
    AuthError,
    change_password,
    clear_session_token,
    login,
    register_user,
    serialize_profile,
)


router = APIRouter(prefix='/api/auth', tags=['Auth'], route_class=EndpointNameRoute)


@router.post('/login')
def auth_login(payload: LoginRequest, db: Session = Depends(get_db)):
    try:
        return login(db, payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


@router.post('/register', status_code=201)
def auth_register(
    payload: RegisterRequest,
    actor: dict | None = Depends(lenient_auth_user),
    db: Session = Depends(get_db),
):
    try:
        user = register_user(
            db,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            role=payload.role,
            department_id=payload.department_id,
            institution_id=payload.institution_id,
            actor=actor,
        )
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'User registered successfully', 'user': serialize_profile(user)}


@router.get('/me')
def auth_me(actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == actor['user_id']).first()
    return {'user': serialize_profile(user)}


@router.post('/change-password')
def auth_change_password(
    payload: ChangePasswordRequest,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        change_password(db, actor['user_id'], payload.old_password, payload.new_password)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'Password updated successfully'}


@router.post('/logout')
def auth_logout(request: Request, _: dict = Depends(require_auth_user)):
    clear_session_token(resolve_token(request))
    return {'ok': True}
