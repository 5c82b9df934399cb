from __future__ import annotations

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user
from app.core.time_provider import default_time_provider
from app.db import get_db
from app.models import Role
from app.route_logging import EndpointNameRoute
from app.schemas import BookingCreate, BookingDeleteRequest, BookingStatusUpdate, BookingUpdate
from app.services.booking_export_service import bookings_to_csv, export_filename
from app.services.booking_service import (
    BookingStateError,
    change_status,
    create_booking,
    delete_booking,
    get_booking,
    get_history,
    list_booking_rows,
    list_bookings,
    set_final_design,
    set_photography_link,
    update_booking,
)
from app.services.press_release_service import pending_press_releases
from app.services.storage_service import StorageError


router = APIRouter(prefix='/api/bookings', tags=['Bookings'], route_class=EndpointNameRoute)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, LookupError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, BookingStateError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.get('')
def list_bookings_api(
    status: str | None = Query(default=None),
    hall_id: str | None = Query(default=None),
    institution_id: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        return list_bookings(db, actor, status=status, hall_id=hall_id, institution_id=institution_id)
    except (PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc


@router.get('/export')
def export_bookings_api(
    status: str | None = Query(default=None),
    hall_id: str | None = Query(default=None),
    institution_id: str | None = Query(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        rows = list_booking_rows(db, actor, status=status, hall_id=hall_id, institution_id=institution_id)
    except (PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    filename = export_filename(default_time_provider.today())
    return Response(
        content=bookings_to_csv(rows),
        media_type='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@router.get('/pending-press-release')
def pending_press_release_api(actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return pending_press_releases(db, actor)
    except PermissionError as exc:
        raise _http_error(exc) from exc


@router.post('', status_code=201)
def create_booking_api(
    payload: BookingCreate,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        booking = create_booking(db, actor, payload.model_dump())
    except (LookupError, PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    message = 'Hall blocked successfully' if booking['status'] == 'approved' else 'Booking requested'
    return {'message': message, 'booking': booking}


@router.get('/{booking_id}')
def get_booking_api(booking_id: str, actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return get_booking(db, booking_id, actor)
    except (LookupError, PermissionError) as exc:
        raise _http_error(exc) from exc


@router.put('/{booking_id}')
def update_booking_api(
    booking_id: str,
    payload: BookingUpdate,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        if actor.get('role') == Role.PHOTOGRAPHY_TEAM.value:
            booking = set_photography_link(db, booking_id, actor, payload.photography_drive_link)
        else:
            values = payload.model_dump(exclude_unset=True, exclude={'reason_for_change', 'photography_drive_link'})
            booking = update_booking(db, booking_id, actor, values, reason=payload.reason_for_change)
    except (LookupError, PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {'message': 'Booking updated successfully', 'booking': booking}


@router.patch('/{booking_id}/status')
def change_booking_status_api(
    booking_id: str,
    payload: BookingStatusUpdate,
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        booking = change_status(
            db,
            booking_id,
            actor,
            status=payload.status,
            rejection_reason=payload.rejection_reason,
        )
    except (LookupError, PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {'message': 'Booking updated', 'booking': booking}


@router.delete('/{booking_id}')
def delete_booking_api(
    booking_id: str,
    reason: str | None = Query(default=None),
    payload: BookingDeleteRequest | None = Body(default=None),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    body_reason = payload.reason if payload else None
    try:
        delete_booking(db, booking_id, actor, reason=body_reason or reason)
    except (LookupError, PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {'message': 'Booking deleted successfully'}


@router.get('/{booking_id}/history')
def booking_history_api(booking_id: str, actor: dict = Depends(require_auth_user), db: Session = Depends(get_db)):
    try:
        return get_history(db, booking_id, actor)
    except (LookupError, PermissionError) as exc:
        raise _http_error(exc) from exc


@router.post('/{booking_id}/final-design')
async def upload_final_design_api(
    booking_id: str,
    request: Request,
    file: UploadFile = File(...),
    actor: dict = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    file_bytes = await file.read()
    try:
        booking = set_final_design(
            db,
            booking_id,
            actor,
            file_bytes=file_bytes,
            filename=file.filename or 'design',
            base_url=str(request.base_url),
        )
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except (LookupError, PermissionError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {'message': 'Final design uploaded successfully', 'booking': booking}
