# slideshow/views.py
from django.conf import settings
from django.shortcuts import render

from albums.models import Album
from .carousel import Carousel
from .gestures import DEFAULT_MAX_SCALE


def selected_index(request):
    """0-based index from the 1-based ``photo`` query parameter."""
    try:
        return int(request.GET.get('photo', 1)) - 1
    except (TypeError, ValueError):
        return 0


def index(request):
    album = Album.objects.active()
    photos = list(album.photos.all()) if album else []

    carousel = Carousel(len(photos), selected_index(request))
    current_photo = photos[carousel.index] if photos else None

    return render(request, 'slideshow/index.html', {
        'album': album,
        'photos': photos,
        'current_photo': current_photo,
        'position': carousel.position,
        'total': carousel.count,
        'previous_position': carousel.previous_index + 1,
        'next_position': carousel.next_index + 1,
        'show_dots': carousel.show_dots,
        'max_scale': getattr(settings, 'PHOTODISPLAY_MAX_SCALE', DEFAULT_MAX_SCALE),
    })
