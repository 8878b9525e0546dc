# photos/models.py
import uuid

from django.db import models


class Photo(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    album = models.ForeignKey('albums.Album', on_delete=models.CASCADE, related_name='photos')
    filename = models.CharField(max_length=255)
    path = models.CharField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    # Filled in by photos.tasks.process_photo
    processed = models.BooleanField(default=False)
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['album'], name='photos_phot_album_i_5b0c7e_idx'),
            models.Index(fields=['processed'], name='photos_phot_process_a93e1d_idx'),
        ]

    def __str__(self):
        return f"Photo {self.filename} in {self.album.name}"

    def to_dict(self):
        return {
            'id': str(self.id),
            'filename': self.filename,
            'path': self.path,
            'album_id': str(self.album_id),
            'created_at': self.created_at.isoformat(),
            'width': self.width,
            'height': self.height,
            'album': {
                'id': str(self.album.id),
                'name': self.album.name,
                'is_active': self.album.is_active,
            },
        }
