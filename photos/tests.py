import io
import shutil
import tempfile
import uuid
from pathlib import Path
from unittest import mock

from PIL import Image

from celery.exceptions import Retry  # type: ignore

from django.contrib import admin
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import CommandError, call_command
from django.test import RequestFactory, SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from albums.models import Album
from users.models import CustomUser
from . import storage
from .models import Photo
from .tasks import process_photo


def png_bytes(width=4, height=3):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color=(200, 30, 90)).save(buffer, format='PNG')
    return buffer.getvalue()


class UploadRootMixin:
    def setUp(self):
        super().setUp()
        self.upload_root = Path(tempfile.mkdtemp())
        override = override_settings(PHOTODISPLAY_UPLOAD_ROOT=self.upload_root)
        override.enable()
        self.addCleanup(override.disable)
        self.addCleanup(shutil.rmtree, self.upload_root, ignore_errors=True)


class StorageTests(UploadRootMixin, SimpleTestCase):
    def test_extension_defaults_to_jpg(self):
        self.assertEqual(storage.extension_for('photo.PNG'), 'PNG')
        self.assertEqual(storage.extension_for('archive.tar.gz'), 'gz')
        self.assertEqual(storage.extension_for('noext'), 'jpg')
        self.assertEqual(storage.extension_for('trailing.'), 'jpg')

    def test_content_types(self):
        self.assertEqual(storage.content_type_for('a/b.JPG'), 'image/jpeg')
        self.assertEqual(storage.content_type_for('b.webp'), 'image/webp')
        self.assertEqual(storage.content_type_for('b.svg'), 'image/svg+xml')
        self.assertEqual(storage.content_type_for('b.bin'), 'application/octet-stream')
        self.assertEqual(storage.content_type_for('README'), 'application/octet-stream')

    def test_save_upload_uses_random_name(self):
        upload = SimpleUploadedFile('holiday.png', b'data')
        path = storage.save_upload(upload)

        self.assertTrue(path.startswith('/api/uploads/'))
        self.assertTrue(path.endswith('.png'))
        stored = self.upload_root / path.rsplit('/', 1)[-1]
        self.assertEqual(stored.read_bytes(), b'data')

    def test_resolve_rejects_traversal(self):
        with self.assertRaises(storage.InvalidPath):
            storage.resolve('../settings.py')
        with self.assertRaises(storage.InvalidPath):
            storage.path_for_public_url('/static/x.png')

    def test_delete_missing_file_is_logged_not_raised(self):
        with self.assertLogs('photos.storage', level='ERROR'):
            self.assertFalse(storage.delete_public_file('/api/uploads/nope.jpg'))


class PhotoApiTestCase(UploadRootMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.admin = CustomUser.objects.create_user(
            username='admin', password='pw-admin-123', role=CustomUser.Roles.ADMIN
        )
        self.album = Album.objects.create(name='Party')

    def add_photo(self, album=None, name='a.jpg'):
        stored = f"{uuid.uuid4()}.jpg"
        (self.upload_root / stored).write_bytes(b'jpeg')
        return Photo.objects.create(album=album or self.album, filename=name, path=f'/api/uploads/{stored}')


class PhotoListTests(PhotoApiTestCase):
    def test_lists_all_photos_with_album_summary(self):
        photo = self.add_photo()

        response = self.client.get(reverse('photos:photo_list'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body), 1)
        self.assertEqual(body[0]['id'], str(photo.id))
        self.assertEqual(body[0]['album'], {'id': str(self.album.id), 'name': 'Party', 'is_active': False})

    def test_filters_by_album(self):
        other = Album.objects.create(name='Other')
        self.add_photo()
        mine = self.add_photo(album=other)

        response = self.client.get(reverse('photos:photo_list'), {'albumId': str(other.id)})

        self.assertEqual([p['id'] for p in response.json()], [str(mine.id)])

    def test_active_only_without_active_album(self):
        self.add_photo()
        response = self.client.get(reverse('photos:photo_list'), {'activeOnly': 'true'})
        self.assertEqual(response.json(), [])

    def test_active_only(self):
        other = Album.objects.create(name='Other')
        self.add_photo()
        shown = self.add_photo(album=other)
        other.activate()

        response = self.client.get(reverse('photos:photo_list'), {'activeOnly': 'true'})

        self.assertEqual([p['id'] for p in response.json()], [str(shown.id)])

    def test_malformed_album_id_lists_nothing(self):
        self.add_photo()
        response = self.client.get(reverse('photos:photo_list'), {'albumId': 'not-a-uuid'})
        self.assertEqual(response.json(), [])


@mock.patch('photos.views.process_photo.delay')
class UploadTests(PhotoApiTestCase):
    def upload(self, **data):
        return self.client.post(reverse('photos:upload_photo'), data)

    def test_requires_admin(self, delay):
        response = self.upload(file=SimpleUploadedFile('a.png', png_bytes()), albumId=str(self.album.id))
        self.assertEqual(response.status_code, 401)
        delay.assert_not_called()

    def test_missing_file(self, delay):
        self.client.force_login(self.admin)
        response = self.upload(albumId=str(self.album.id))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'No file provided'})

    def test_missing_album_id(self, delay):
        self.client.force_login(self.admin)
        response = self.upload(file=SimpleUploadedFile('a.png', png_bytes()))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Album ID is required'})

    def test_unknown_album(self, delay):
        self.client.force_login(self.admin)
        for album_id in (str(uuid.uuid4()), 'garbage'):
            response = self.upload(file=SimpleUploadedFile('a.png', png_bytes()), albumId=album_id)
            self.assertEqual(response.status_code, 404)
        self.assertEqual(list(self.upload_root.iterdir()), [])

    def test_upload_stores_file_and_queues_processing(self, delay):
        self.client.force_login(self.admin)
        response = self.upload(file=SimpleUploadedFile('Sunset.png', png_bytes()), albumId=str(self.album.id))

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['filename'], 'Sunset.png')
        self.assertRegex(body['path'], r'^/api/uploads/[0-9a-f-]{36}\.png$')

        photo = Photo.objects.get()
        self.assertTrue((self.upload_root / photo.path.rsplit('/', 1)[-1]).is_file())
        delay.assert_called_once_with(str(photo.id))

    def test_queue_failure_leaves_no_photo_behind(self, delay):
        delay.side_effect = OSError('broker down')
        self.client.force_login(self.admin)
        with self.assertLogs('photos.views', level='ERROR'):
            response = self.upload(file=SimpleUploadedFile('a.png', png_bytes()), albumId=str(self.album.id))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'Failed to upload photo'})
        self.assertEqual(Photo.objects.count(), 0)
        self.assertEqual(list(self.upload_root.iterdir()), [])

    def test_database_failure_removes_stored_file(self, delay):
        self.client.force_login(self.admin)
        with mock.patch('photos.views.Photo.objects.create', side_effect=RuntimeError('db gone')):
            with self.assertLogs('photos.views', level='ERROR'):
                response = self.upload(file=SimpleUploadedFile('a.png', png_bytes()), albumId=str(self.album.id))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(list(self.upload_root.iterdir()), [])
        delay.assert_not_called()


class PhotoAdminTests(PhotoApiTestCase):
    def setUp(self):
        super().setUp()
        self.superuser = CustomUser.objects.create_superuser(
            username='root', email='root@example.com', password='pw-root-123'
        )
        self.client.force_login(self.superuser)

    def test_photos_cannot_be_added_from_admin(self):
        response = self.client.get(reverse('admin:photos_photo_add'))
        self.assertEqual(response.status_code, 403)

        request = RequestFactory().get('/admin/photos/photo/')
        request.user = self.superuser
        self.assertFalse(admin.site._registry[Photo].has_add_permission(request))

    def test_changelist_lists_uploaded_photos(self):
        self.add_photo(name='beach.jpg')
        response = self.client.get(reverse('admin:photos_photo_changelist'))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'beach.jpg')
        self.assertNotContains(response, reverse('admin:photos_photo_add'))


class DeletePhotoTests(PhotoApiTestCase):
    def test_delete_removes_file_and_record(self):
        photo = self.add_photo()
        file_path = self.upload_root / photo.path.rsplit('/', 1)[-1]
        self.client.force_login(self.admin)

        response = self.client.delete(reverse('photos:delete_photo', args=[photo.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True})
        self.assertFalse(file_path.exists())
        self.assertFalse(Photo.objects.exists())

    def test_missing_file_still_deletes_record(self):
        photo = self.add_photo()
        (self.upload_root / photo.path.rsplit('/', 1)[-1]).unlink()
        self.client.force_login(self.admin)

        with self.assertLogs('photos.storage', level='ERROR'):
            response = self.client.delete(reverse('photos:delete_photo', args=[photo.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Photo.objects.exists())

    def test_unknown_photo(self):
        self.client.force_login(self.admin)
        response = self.client.delete(reverse('photos:delete_photo', args=[uuid.uuid4()]))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'error': 'Photo not found'})

    def test_requires_admin(self):
        photo = self.add_photo()
        response = self.client.delete(reverse('photos:delete_photo', args=[photo.pk]))

        self.assertEqual(response.status_code, 401)
        self.assertTrue(Photo.objects.exists())


class ServeUploadTests(UploadRootMixin, SimpleTestCase):
    def test_serves_file_with_content_type_and_cache_headers(self):
        (self.upload_root / 'pic.png').write_bytes(b'png-bytes')

        response = self.client.get(reverse('photos:serve_upload', args=['pic.png']))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'image/png')
        self.assertEqual(response['Cache-Control'], 'public, max-age=31536000, immutable')
        self.assertEqual(b''.join(response.streaming_content), b'png-bytes')

    def test_traversal_is_rejected(self):
        response = self.client.get('/api/uploads/nested/..secret.png')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Invalid path'})

    def test_missing_file(self):
        response = self.client.get(reverse('photos:serve_upload', args=['gone.jpg']))
        self.assertEqual(response.status_code, 404)


class ProcessPhotoTaskTests(PhotoApiTestCase):
    def test_records_dimensions(self):
        stored = 'sized.png'
        (self.upload_root / stored).write_bytes(png_bytes(40, 25))
        photo = Photo.objects.create(album=self.album, filename='sized.png', path=f'/api/uploads/{stored}')

        result = process_photo(str(photo.id))

        photo.refresh_from_db()
        self.assertEqual((photo.width, photo.height), (40, 25))
        self.assertTrue(photo.processed)
        self.assertEqual(result, {'width': 40, 'height': 25})

    def test_already_processed_photo_is_skipped(self):
        photo = self.add_photo()
        Photo.objects.filter(pk=photo.pk).update(processed=True)

        self.assertIsNone(process_photo(str(photo.id)))

    def test_deleted_photo_is_skipped(self):
        self.assertIsNone(process_photo(str(uuid.uuid4())))

    @mock.patch('celery.app.task.Task.retry', side_effect=Retry())
    def test_unreadable_file_is_retried(self, retry):
        photo = Photo.objects.create(album=self.album, filename='gone.png', path='/api/uploads/gone.png')

        with self.assertLogs('photos.tasks', level='ERROR'):
            with self.assertRaises(Retry):
                process_photo(str(photo.id))

        retry.assert_called_once()
        self.assertIsInstance(retry.call_args.kwargs['exc'], FileNotFoundError)
        photo.refresh_from_db()
        self.assertFalse(photo.processed)

    @mock.patch('photos.management.commands.process_pending_photos.process_photo.delay')
    def test_command_queues_unprocessed_photos(self, delay):
        pending = self.add_photo()
        done = self.add_photo()
        Photo.objects.filter(pk=done.pk).update(processed=True)

        call_command('process_pending_photos', stdout=io.StringIO())

        delay.assert_called_once_with(str(pending.id))

    @mock.patch('photos.management.commands.process_pending_photos.process_photo.delay')
    def test_command_limits_to_one_album(self, delay):
        other = Album.objects.create(name='Other')
        self.add_photo()
        wanted = self.add_photo(album=other, name='cake.jpg')

        out = io.StringIO()
        call_command('process_pending_photos', album=str(other.id), stdout=out)

        delay.assert_called_once_with(str(wanted.id))
        self.assertIn('Queuing cake.jpg', out.getvalue())

    @mock.patch('photos.management.commands.process_pending_photos.process_photo.delay')
    def test_command_dry_run_queues_nothing(self, delay):
        self.add_photo(name='cake.jpg')

        out = io.StringIO()
        call_command('process_pending_photos', dry_run=True, stdout=out)

        delay.assert_not_called()
        self.assertIn('Would queue cake.jpg', out.getvalue())

    def test_command_rejects_unknown_album(self):
        for album_id in (str(uuid.uuid4()), 'garbage'):
            with self.assertRaisesMessage(CommandError, f"Album {album_id} does not exist"):
                call_command('process_pending_photos', album=album_id, stdout=io.StringIO())
