from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from app.core.router_guard import require_auth_user
from app.route_logging import EndpointNameRoute
from app.services.storage_service import StorageError, save_file


router = APIRouter(prefix='/api', tags=['Uploads'], route_class=EndpointNameRoute)


@router.post('/upload')
async def upload_image(
    request: Request,
    image: UploadFile = File(...),
    _: dict = Depends(require_auth_user),
):
    file_bytes = await image.read()
    try:
        url = save_file(file_bytes, image.filename or 'upload', base_url=str(request.base_url))
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {'url': url}
