import io

from django.http import HttpResponse
from django.test import RequestFactory, TestCase, override_settings
from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.urls import reverse

from albums.models import Album
from photos.models import Photo
from .decorators import admin_required
from .models import CustomUser


@admin_required
def protected_view(request):
    return HttpResponse('ok')


class AdminRequiredTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def call(self, user):
        request = self.factory.post('/anything/')
        request.user = user
        return protected_view(request)

    def test_anonymous_is_rejected(self):
        response = self.call(AnonymousUser())
        self.assertEqual(response.status_code, 401)

    def test_viewer_is_rejected(self):
        viewer = CustomUser.objects.create_user(username='v', password='pw-viewer-123')
        self.assertEqual(viewer.role, CustomUser.Roles.VIEWER)
        self.assertEqual(self.call(viewer).status_code, 401)

    def test_admin_passes(self):
        admin = CustomUser.objects.create_user(username='a', password='pw-admin-123', role=CustomUser.Roles.ADMIN)
        self.assertTrue(admin.is_admin)
        self.assertEqual(self.call(admin).content, b'ok')


class SessionViewTests(TestCase):
    def test_anonymous_session(self):
        response = self.client.get(reverse('session'))
        self.assertEqual(response.json(), {'authenticated': False, 'user': None})

    def test_signed_in_session(self):
        user = CustomUser.objects.create_user(
            username='admin', email='admin@example.com', password='pw-admin-123',
            role=CustomUser.Roles.ADMIN, display_name='Admin'
        )
        self.client.force_login(user)

        body = self.client.get(reverse('session')).json()

        self.assertTrue(body['authenticated'])
        self.assertEqual(body['user']['role'], 'ADMIN')
        self.assertEqual(body['user']['name'], 'Admin')

    def test_login_and_logout(self):
        CustomUser.objects.create_user(username='admin', password='pw-admin-123', role=CustomUser.Roles.ADMIN)

        response = self.client.post(reverse('users:login'), {'username': 'admin', 'password': 'pw-admin-123'})
        self.assertRedirects(response, reverse('slideshow:index'))
        self.assertTrue(self.client.get(reverse('session')).json()['authenticated'])

        response = self.client.post(reverse('users:logout'))
        self.assertRedirects(response, reverse('users:login'))
        self.assertFalse(self.client.get(reverse('session')).json()['authenticated'])


@override_settings(PHOTODISPLAY_ADMIN_EMAIL='owner@example.com', PHOTODISPLAY_ADMIN_PASSWORD='s3cret-pass')
class InitCommandTests(TestCase):
    def run_command(self, *args):
        out = io.StringIO()
        call_command('init_photodisplay', *args, stdout=out)
        return out.getvalue()

    def test_creates_admin_and_active_default_album(self):
        output = self.run_command()

        admin = CustomUser.objects.get(email='owner@example.com')
        self.assertTrue(admin.is_admin)
        self.assertTrue(admin.check_password('s3cret-pass'))
        album = Album.objects.get()
        self.assertEqual(album.name, 'Default Album')
        self.assertTrue(album.is_active)
        self.assertEqual(album.owner, admin)
        self.assertIn('Database initialized successfully!', output)

    def test_is_idempotent(self):
        self.run_command()
        output = self.run_command()

        self.assertIn('Admin user already exists, skipping seed.', output)
        self.assertEqual(CustomUser.objects.count(), 1)
        self.assertEqual(Album.objects.count(), 1)

    def test_command_line_credentials_win(self):
        self.run_command('--email', 'other@example.com', '--password', 'another-pass')
        self.assertTrue(CustomUser.objects.filter(email='other@example.com').exists())

    def test_migrates_legacy_photo_paths(self):
        album = Album.objects.create(name='Legacy')
        old = Photo.objects.create(album=album, filename='a.jpg', path='/uploads/a.jpg')
        new = Photo.objects.create(album=album, filename='b.jpg', path='/api/uploads/b.jpg')

        output = self.run_command()

        old.refresh_from_db()
        new.refresh_from_db()
        self.assertEqual(old.path, '/api/uploads/a.jpg')
        self.assertEqual(new.path, '/api/uploads/b.jpg')
        self.assertIn('Migrating 1 photo path(s)...', output)
