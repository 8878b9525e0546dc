from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from albums.models import Album
from photos.models import Photo
from photos.tasks import process_photo


class Command(BaseCommand):
    help = (
        'Queue dimension reads for photos still missing a width and height, '
        'e.g. uploads made while the Celery broker was unreachable'
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--album',
            help='Only queue photos from the album with this id',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the photos that would be queued without queuing them',
        )

    def handle(self, *args, **options):
        pending_photos = Photo.objects.filter(processed=False).select_related('album')

        album_id = options.get('album')
        if album_id:
            try:
                album = Album.objects.get(pk=album_id)
            except (Album.DoesNotExist, ValidationError):
                raise CommandError(f"Album {album_id} does not exist")
            pending_photos = pending_photos.filter(album=album)

        count = pending_photos.count()
        self.stdout.write(f"Found {count} photos without dimensions")

        for photo in pending_photos:
            if options['dry_run']:
                self.stdout.write(f"Would queue {photo.filename} ({photo.id}) from {photo.album.name}")
                continue
            self.stdout.write(f"Queuing {photo.filename} ({photo.id}) from {photo.album.name}")
            process_photo.delay(str(photo.id))

        if not options['dry_run']:
            self.stdout.write(self.style.SUCCESS(f"Successfully queued {count} photos for processing"))
