# photos/views.py
import logging

from django.core.exceptions import ValidationError
from django.http import FileResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from albums.models import Album
from users.decorators import admin_required
from .models import Photo
from .storage import InvalidPath, content_type_for, delete_public_file, resolve, save_upload
from .tasks import process_photo

logger = logging.getLogger(__name__)


@require_GET
def photo_list(request):
    album_id = request.GET.get('albumId')
    active_only = request.GET.get('activeOnly') == 'true'

    try:
        photos = Photo.objects.select_related('album')

        if album_id:
            try:
                photos = list(photos.filter(album_id=album_id))
            except ValidationError:
                photos = []
        elif active_only:
            active_album = Album.objects.active()
            if active_album is None:
                return JsonResponse([], safe=False)
            photos = photos.filter(album=active_album)

        return JsonResponse([photo.to_dict() for photo in photos], safe=False)
    except Exception as e:
        logger.error(f"Error fetching photos: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to fetch photos'}, status=500)


@require_POST
@admin_required
def upload_photo(request):
    uploaded = request.FILES.get('file')
    album_id = request.POST.get('albumId')

    if not uploaded:
        return JsonResponse({'error': 'No file provided'}, status=400)

    if not album_id:
        return JsonResponse({'error': 'Album ID is required'}, status=400)

    try:
        album = Album.objects.filter(pk=album_id).first()
    except ValidationError:
        # Malformed ids cannot name an album
        album = None

    if album is None:
        return JsonResponse({'error': 'Album not found'}, status=404)

    path = None
    photo = None
    try:
        path = save_upload(uploaded)
        photo = Photo.objects.create(
            album=album,
            filename=uploaded.name,
            path=path
        )
        process_photo.delay(str(photo.id))
        return JsonResponse(photo.to_dict(), status=201)
    except Exception as e:
        logger.error(f"Error uploading photo: {str(e)}", exc_info=True)
        # A failed upload leaves nothing behind, so the client can retry
        if photo is not None:
            photo.delete()
        elif path is not None:
            delete_public_file(path)
        return JsonResponse({'error': 'Failed to upload photo'}, status=500)


@require_http_methods(['DELETE'])
@admin_required
def delete_photo(request, pk):
    try:
        photo = Photo.objects.filter(pk=pk).first()
        if photo is None:
            return JsonResponse({'error': 'Photo not found'}, status=404)

        # The file goes first in photos.signals; a failure there is only logged
        photo.delete()
        return JsonResponse({'success': True})
    except Exception as e:
        logger.error(f"Error deleting photo {pk}: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to delete photo'}, status=500)


@require_GET
def serve_upload(request, path):
    try:
        full_path = resolve(path)
    except InvalidPath:
        return JsonResponse({'error': 'Invalid path'}, status=400)

    if not full_path.is_file():
        return JsonResponse({'error': 'File not found'}, status=404)

    try:
        response = FileResponse(open(full_path, 'rb'), content_type=content_type_for(path))
    except OSError as e:
        logger.error(f"Error serving file {path}: {str(e)}")
        return JsonResponse({'error': 'Failed to serve file'}, status=500)

    response['Cache-Control'] = 'public, max-age=31536000, immutable'
    return response
