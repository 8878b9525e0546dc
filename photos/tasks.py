# photos/tasks.py
import logging

from PIL import Image, UnidentifiedImageError

from celery import shared_task  # type: ignore

from .models import Photo
from .storage import InvalidPath, path_for_public_url

logger = logging.getLogger(__name__)


def read_dimensions(file_path):
    with Image.open(file_path) as image:
        return image.size


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def process_photo(self, photo_id):
    """Record the pixel size of an uploaded photo."""
    logger.info(f"Starting to process photo {photo_id}")
    try:
        photo = Photo.objects.get(id=photo_id)
    except Photo.DoesNotExist:
        logger.warning(f"Photo {photo_id} no longer exists, skipping")
        return None

    if photo.processed:
        logger.info(f"Photo {photo_id} already processed, skipping")
        return None

    try:
        width, height = read_dimensions(path_for_public_url(photo.path))
    except InvalidPath:
        logger.error(f"Photo {photo_id} has a path outside the upload root: {photo.path}")
        return None
    except (OSError, UnidentifiedImageError) as e:
        logger.error(f"Error processing photo {photo_id}: {str(e)}", exc_info=True)
        # Re-raises e once max_retries is used up
        raise self.retry(exc=e)

    photo.width = width
    photo.height = height
    photo.processed = True
    photo.save(update_fields=['width', 'height', 'processed'])
    logger.info(f"Photo {photo_id} is {width}x{height}")
    return {'width': width, 'height': height}
