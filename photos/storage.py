# photos/storage.py
"""Local-disk intake and lookup for uploaded photo files."""
import logging
import os
import uuid
from pathlib import Path

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = 'jpg'

CONTENT_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
}


class InvalidPath(ValueError):
    pass


def upload_root():
    return Path(settings.PHOTODISPLAY_UPLOAD_ROOT)


def extension_for(filename):
    # Same rule as the upload form: whatever follows the last dot
    ext = filename.rsplit('.', 1)[-1] if '.' in filename else ''
    return ext or DEFAULT_EXTENSION


def content_type_for(name):
    ext = name.rsplit('.', 1)[-1].lower() if '.' in name else ''
    return CONTENT_TYPES.get(ext, 'application/octet-stream')


def save_upload(uploaded_file):
    """Write an uploaded file under a random name and return its public path."""
    root = upload_root()
    root.mkdir(parents=True, exist_ok=True)

    stored_name = f"{uuid.uuid4()}.{extension_for(uploaded_file.name)}"
    with open(root / stored_name, 'wb') as destination:
        for chunk in uploaded_file.chunks():
            destination.write(chunk)

    logger.info(f"Stored upload {uploaded_file.name} as {stored_name}")
    return f"{settings.PHOTODISPLAY_UPLOAD_URL}{stored_name}"


def resolve(relative_path):
    """Absolute file path for a path below the upload root.

    Raises InvalidPath for anything that tries to climb out of it.
    """
    if '..' in relative_path:
        raise InvalidPath(relative_path)
    root = upload_root().resolve()
    full_path = (root / relative_path.lstrip('/')).resolve()
    if root != full_path and root not in full_path.parents:
        raise InvalidPath(relative_path)
    return full_path


def path_for_public_url(public_path):
    prefix = settings.PHOTODISPLAY_UPLOAD_URL
    if not public_path.startswith(prefix):
        raise InvalidPath(public_path)
    return resolve(public_path[len(prefix):])


def delete_public_file(public_path):
    """Remove the file behind a photo path. Failures are logged, never raised."""
    try:
        os.remove(path_for_public_url(public_path))
    except (OSError, InvalidPath) as e:
        logger.error(f"Error deleting file {public_path}: {str(e)}")
        return False
    return True
