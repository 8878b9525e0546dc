from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from albums.models import Album
from photos.models import Photo
from users.models import CustomUser

LEGACY_PREFIX = '/uploads/'


class Command(BaseCommand):
    help = 'Create the admin account and default album, and migrate legacy photo paths'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=None, help='Admin email (defaults to PHOTODISPLAY_ADMIN_EMAIL)')
        parser.add_argument('--password', default=None, help='Admin password (defaults to PHOTODISPLAY_ADMIN_PASSWORD)')

    def handle(self, *args, **options):
        email = options['email'] or settings.PHOTODISPLAY_ADMIN_EMAIL
        password = options['password'] or settings.PHOTODISPLAY_ADMIN_PASSWORD

        self.stdout.write("Checking database...")
        self.migrate_photo_paths()

        if CustomUser.objects.filter(email=email).exists():
            self.stdout.write("Admin user already exists, skipping seed.")
            return

        with transaction.atomic():
            self.stdout.write("Creating admin user...")
            admin = CustomUser.objects.create_user(
                username=email,
                email=email,
                password=password,
                display_name='Admin',
                role=CustomUser.Roles.ADMIN,
                is_staff=True,
            )
            self.stdout.write(f"Admin user created: {admin.email}")

            album = Album.objects.create(
                name='Default Album',
                description='Default album for photos',
                owner=admin,
            )
            album.activate()
            self.stdout.write(f"Default album created: {album.name} (active)")

        self.stdout.write(self.style.SUCCESS("Database initialized successfully!"))

    def migrate_photo_paths(self):
        new_prefix = settings.PHOTODISPLAY_UPLOAD_URL
        legacy = Photo.objects.filter(path__startswith=LEGACY_PREFIX).exclude(path__startswith=new_prefix)
        count = legacy.count()
        if not count:
            return

        self.stdout.write(f"Migrating {count} photo path(s)...")
        for photo in legacy:
            photo.path = new_prefix + photo.path[len(LEGACY_PREFIX):]
            photo.save(update_fields=['path'])
        self.stdout.write("Photo paths migrated successfully.")
