# albums/views.py
import json
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods, require_POST

from users.decorators import admin_required
from .models import Album

logger = logging.getLogger(__name__)


def parse_json_body(request):
    """Decoded JSON object from the request body, or None when it is not one."""
    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def clean_text(value):
    if not isinstance(value, str):
        return None
    return value.strip() or None


@require_http_methods(['GET', 'POST'])
def album_collection(request):
    if request.method == 'POST':
        return create_album(request)

    try:
        albums = Album.objects.with_photo_count()
        return JsonResponse([album.to_dict() for album in albums], safe=False)
    except Exception as e:
        logger.error(f"Error fetching albums: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to fetch albums'}, status=500)


@admin_required
def create_album(request):
    data = parse_json_body(request)
    if data is None:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    name = clean_text(data.get('name'))
    if not name:
        return JsonResponse({'error': 'Album name is required'}, status=400)

    try:
        album = Album.objects.create(
            name=name,
            description=clean_text(data.get('description')),
            owner=request.user
        )
        logger.info(f"Album {album.id} created by {request.user.username}")
        return JsonResponse(album.to_dict(), status=201)
    except Exception as e:
        logger.error(f"Error creating album: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to create album'}, status=500)


@require_http_methods(['PUT', 'DELETE'])
@admin_required
def album_detail(request, pk):
    if request.method == 'PUT':
        return update_album(request, pk)
    return delete_album(request, pk)


def update_album(request, pk):
    data = parse_json_body(request)
    if data is None:
        return JsonResponse({'error': 'Invalid JSON body'}, status=400)

    name = clean_text(data.get('name'))
    if not name:
        return JsonResponse({'error': 'Album name is required'}, status=400)

    try:
        album = Album.objects.filter(pk=pk).first()
        if album is None:
            return JsonResponse({'error': 'Album not found'}, status=404)

        album.name = name
        album.description = clean_text(data.get('description'))
        album.save(update_fields=['name', 'description', 'updated_at'])
        return JsonResponse(album.to_dict())
    except Exception as e:
        logger.error(f"Error updating album {pk}: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to update album'}, status=500)


def delete_album(request, pk):
    try:
        album = Album.objects.filter(pk=pk).first()
        if album is None:
            return JsonResponse({'error': 'Album not found'}, status=404)

        # Photo rows cascade; their files are removed by the photos app signal
        album.delete()
        logger.info(f"Album {pk} deleted by {request.user.username}")
        return JsonResponse({'success': True})
    except Exception as e:
        logger.error(f"Error deleting album {pk}: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to delete album'}, status=500)


@require_POST
@admin_required
def activate_album(request, pk):
    try:
        album = Album.objects.filter(pk=pk).first()
        if album is None:
            return JsonResponse({'error': 'Album not found'}, status=404)

        album.activate()
        logger.info(f"Album {pk} is now the active album")
        return JsonResponse(album.to_dict())
    except Exception as e:
        logger.error(f"Error activating album {pk}: {str(e)}", exc_info=True)
        return JsonResponse({'error': 'Failed to activate album'}, status=500)
