from contextlib import asynccontextmanager
import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.core.errors import install_error_handlers
from app.db import Base, SessionLocal, engine
from app.route_logging import EndpointNameRoute
from app.routers import auth, bookings, dashboard, halls, institutions, press_releases, settings_api, uploads, users
from app.services.bootstrap_service import run_bootstrap
from app.services.storage_service import UPLOAD_URL_PREFIX, upload_root

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        run_bootstrap(db)
    finally:
        db.close()
    yield


os.makedirs(upload_root(), exist_ok=True)

app = FastAPI(title=settings.app_name, version='1.0.0', lifespan=lifespan)
app.router.route_class = EndpointNameRoute
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.frontend_url.split(',') if origin.strip()],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)
install_error_handlers(app)
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=upload_root()), name='uploads')


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.metrics_slow_ms:
        logging.getLogger('app.request').info(
            'request_slow path=%s method=%s status_code=%s duration_ms=%.2f',
            request.url.path,
            request.method,
            response.status_code,
            duration_ms,
        )
    return response


app.include_router(auth.router)
app.include_router(institutions.router)
app.include_router(users.router)
app.include_router(halls.router)
app.include_router(bookings.router)
app.include_router(press_releases.router)
app.include_router(dashboard.router)
app.include_router(settings_api.router)
app.include_router(uploads.router)


@app.get('/')
def root():
    return {'app': settings.app_name, 'status': 'ok'}


@app.get('/health')
@app.get('/api/health')
def healthcheck():
    return {'status': 'ok'}
