from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import PressReleaseStatusUpdate
from app.services.press_release_service import (
    DuplicateSubmissionError,
    create_press_release,
    list_approved_for_team,
    list_own_press_releases,
    list_press_releases_for_review,
    set_press_release_status,
)
from app.services.storage_service import StorageError


router = APIRouter(prefix='/api', tags=['Press Releases'], route_class=EndpointNameRoute)


async def _read_upload(upload: UploadFile | None) -> tuple[bytes, str] | None:
    if upload is None or not upload.filename:
        return None
    return await upload.read(), upload.filename


@router.post('/press-releases', status_code=201)
async def submit_press_release_api(
    request: Request,
    booking_id: str = Form(...),
    coordinator_name: str = Form(...),
    event_title: str = Form(default=''),
    event_date: str = Form(default=''),
    english_writeup: UploadFile | None = File(default=None),
    tamil_writeup: UploadFile | None = File(default=None),
    photo_description: UploadFile | None = File(default=None),
    photos: list[UploadFile] = File(default=[]),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    documents = {}
    for field, upload in (
        ('english_writeup', english_writeup),
        ('tamil_writeup', tamil_writeup),
        ('photo_description', photo_description),
    ):
        item = await _read_upload(upload)
        if item:
            documents[field] = item
    photo_items = [item for item in [await _read_upload(upload) for upload in photos] if item]
    try:
        parsed_event_date = date.fromisoformat(event_date.strip()) if event_date.strip() else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail='event_date must be YYYY-MM-DD') from exc

    try:
        press_release = create_press_release(
            db,
            actor,
            booking_id=booking_id,
            coordinator_name=coordinator_name,
            event_title=event_title,
            event_date=parsed_event_date,
            documents=documents,
            photos=photo_items,
            base_url=str(request.base_url),
        )
    except DuplicateSubmissionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'Press release submitted successfully', 'press_release': press_release}


@router.get('/press-releases')
def list_own_press_releases_api(actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    return list_own_press_releases(db, actor)


@router.get('/admin/press-releases')
def list_press_releases_for_review_api(
    status: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        return list_press_releases_for_review(db, actor, status=status)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put('/admin/press-releases/{press_release_id}/status')
def update_press_release_status_api(
    press_release_id: str,
    payload: PressReleaseStatusUpdate,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        press_release = set_press_release_status(db, press_release_id, actor, status=payload.status)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'message': 'Status updated', 'press_release': press_release}


@router.get('/teams/approved-press-releases')
def approved_press_releases_api(actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return list_approved_for_team(db, actor)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
