import json
import uuid

from django.test import TestCase
from django.urls import reverse

from photos.models import Photo
from users.models import CustomUser
from .models import Album


class AlbumApiTestCase(TestCase):
    def setUp(self):
        self.admin = CustomUser.objects.create_user(
            username='admin', password='pw-admin-123', role=CustomUser.Roles.ADMIN
        )
        self.viewer = CustomUser.objects.create_user(username='viewer', password='pw-viewer-123')

    def login_admin(self):
        self.client.force_login(self.admin)

    def send_json(self, method, url, data):
        return getattr(self.client, method)(url, data=json.dumps(data), content_type='application/json')


class AlbumCollectionTests(AlbumApiTestCase):
    def test_list_is_public_and_counts_photos(self):
        album = Album.objects.create(name='Holiday')
        Photo.objects.create(album=album, filename='a.jpg', path='/api/uploads/a.jpg')
        Album.objects.create(name='Empty')

        response = self.client.get(reverse('albums:album_collection'))

        self.assertEqual(response.status_code, 200)
        counts = {item['name']: item['photo_count'] for item in response.json()}
        self.assertEqual(counts, {'Holiday': 1, 'Empty': 0})

    def test_create_requires_admin(self):
        url = reverse('albums:album_collection')
        self.assertEqual(self.send_json('post', url, {'name': 'x'}).status_code, 401)

        self.client.force_login(self.viewer)
        response = self.send_json('post', url, {'name': 'x'})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Unauthorized'})
        self.assertFalse(Album.objects.exists())

    def test_create_album(self):
        self.login_admin()
        response = self.send_json('post', reverse('albums:album_collection'), {
            'name': '  Summer  ', 'description': 'Beach days'
        })

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['name'], 'Summer')
        self.assertEqual(body['description'], 'Beach days')
        self.assertFalse(body['is_active'])
        self.assertEqual(Album.objects.get().owner, self.admin)

    def test_create_without_name(self):
        self.login_admin()
        response = self.send_json('post', reverse('albums:album_collection'), {'name': '   '})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Album name is required'})

    def test_create_with_malformed_body(self):
        self.login_admin()
        response = self.client.post(
            reverse('albums:album_collection'), data='not json', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)


class AlbumDetailTests(AlbumApiTestCase):
    def setUp(self):
        super().setUp()
        self.album = Album.objects.create(name='Old name', description='old')
        self.url = reverse('albums:album_detail', args=[self.album.pk])

    def test_update_album(self):
        self.login_admin()
        response = self.send_json('put', self.url, {'name': ' New name ', 'description': '  '})

        self.assertEqual(response.status_code, 200)
        self.album.refresh_from_db()
        self.assertEqual(self.album.name, 'New name')
        self.assertIsNone(self.album.description)

    def test_update_requires_name(self):
        self.login_admin()
        response = self.send_json('put', self.url, {'description': 'x'})
        self.assertEqual(response.status_code, 400)

    def test_update_unknown_album(self):
        self.login_admin()
        url = reverse('albums:album_detail', args=[uuid.uuid4()])
        response = self.send_json('put', url, {'name': 'x'})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'error': 'Album not found'})

    def test_delete_album_cascades_photos(self):
        Photo.objects.create(album=self.album, filename='a.jpg', path='/api/uploads/missing.jpg')
        self.login_admin()

        with self.assertLogs('photos.storage', level='ERROR'):
            response = self.client.delete(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True})
        self.assertFalse(Album.objects.exists())
        self.assertFalse(Photo.objects.exists())

    def test_delete_requires_admin(self):
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, 401)
        self.assertTrue(Album.objects.exists())

    def test_delete_unknown_album(self):
        self.login_admin()
        response = self.client.delete(reverse('albums:album_detail', args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, 404)


class ActivateAlbumTests(AlbumApiTestCase):
    def test_activating_switches_the_active_album(self):
        album_a = Album.objects.create(name='A', is_active=True)
        album_b = Album.objects.create(name='B')
        self.login_admin()

        response = self.client.post(reverse('albums:activate_album', args=[album_b.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['is_active'])
        album_a.refresh_from_db()
        album_b.refresh_from_db()
        self.assertFalse(album_a.is_active)
        self.assertTrue(album_b.is_active)
        self.assertEqual(Album.objects.filter(is_active=True).count(), 1)

    def test_activate_repairs_multiple_active_albums(self):
        Album.objects.create(name='A', is_active=True)
        Album.objects.create(name='B', is_active=True)
        album_c = Album.objects.create(name='C')

        album_c.activate()

        self.assertEqual(list(Album.objects.filter(is_active=True)), [album_c])
        self.assertEqual(Album.objects.active(), album_c)

    def test_activate_requires_admin(self):
        album = Album.objects.create(name='A')
        self.client.force_login(self.viewer)

        response = self.client.post(reverse('albums:activate_album', args=[album.pk]))

        self.assertEqual(response.status_code, 401)
        album.refresh_from_db()
        self.assertFalse(album.is_active)

    def test_activate_unknown_album(self):
        self.login_admin()
        response = self.client.post(reverse('albums:activate_album', args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, 404)

    def test_activate_rejects_get(self):
        album = Album.objects.create(name='A')
        self.login_admin()
        response = self.client.get(reverse('albums:activate_album', args=[album.pk]))
        self.assertEqual(response.status_code, 405)
