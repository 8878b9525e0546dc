# albums/models.py
import uuid

from django.conf import settings
from django.db import models, transaction


class AlbumQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True).first()

    def with_photo_count(self):
        return self.annotate(photo_count=models.Count('photos'))


class Album(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    is_active = models.BooleanField(default=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='albums'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AlbumQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active'], name='albums_albu_is_acti_8d1f2c_idx'),
        ]

    def __str__(self):
        return f"{self.name} (active)" if self.is_active else self.name

    def activate(self):
        """Make this the only active album."""
        with transaction.atomic():
            Album.objects.filter(is_active=True).update(is_active=False)
            Album.objects.filter(pk=self.pk).update(is_active=True)
        self.refresh_from_db()
        return self

    def to_dict(self):
        data = {
            'id': str(self.id),
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'owner_id': self.owner_id,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }
        if hasattr(self, 'photo_count'):
            data['photo_count'] = self.photo_count
        return data
