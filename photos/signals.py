# photos/signals.py
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Photo
from .storage import delete_public_file


@receiver(pre_delete, sender=Photo)
def photo_pre_delete(sender, instance, **kwargs):
    """Remove the file from disk before the row goes, including album cascades."""
    if instance.path:
        delete_public_file(instance.path)
