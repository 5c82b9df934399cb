from __future__ import annotations

import logging
import os
import re
import uuid

from app.config import settings


logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = '/uploads'
MAX_UPLOAD_BYTES = 20 * 1024 * 1024
_EXTENSION_RE = re.compile(r'^\.[A-Za-z0-9]{1,10}$')


class StorageError(RuntimeError):
    """Raised when an upload cannot be written to disk."""


def upload_root() -> str:
    return os.path.abspath(settings.upload_dir)


def _safe_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename or '')
    return ext.lower() if _EXTENSION_RE.match(ext or '') else ''


def build_stored_name(filename: str) -> str:
    return f'{uuid.uuid4().hex}{_safe_extension(filename)}'


def public_url(stored_name: str, *, base_url: str = '') -> str:
    prefix = (settings.public_base_url or base_url or '').rstrip('/')
    return f'{prefix}{UPLOAD_URL_PREFIX}/{stored_name}'


def validate_upload(file_bytes: bytes) -> None:
    if not file_bytes:
        raise ValueError('Uploaded file is empty')
    if len(file_bytes) > MAX_UPLOAD_BYTES:
        raise ValueError('Uploaded file is too large')


def save_file(file_bytes: bytes, filename: str, *, base_url: str = '') -> str:
    """Write an uploaded file under the upload directory and return its public URL."""
    validate_upload(file_bytes)

    root = upload_root()
    stored_name = build_stored_name(filename)
    try:
        os.makedirs(root, exist_ok=True)
        with open(os.path.join(root, stored_name), 'wb') as handle:
            handle.write(file_bytes)
    except OSError as exc:
        logger.error('upload_write_failed name=%s error=%s', stored_name, exc)
        raise StorageError('Could not store uploaded file') from exc

    logger.info('upload_stored name=%s size=%s', stored_name, len(file_bytes))
    return public_url(stored_name, base_url=base_url)


def discard_file(url: str | None) -> None:
    """Remove a file stored by ``save_file``; missing files are ignored."""
    stored_name = (url or '').rsplit('/', 1)[-1]
    if not stored_name:
        return
    path = os.path.join(upload_root(), stored_name)
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    logger.info('upload_discarded name=%s', stored_name)
