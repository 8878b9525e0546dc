from django.apps import AppConfig


class SlideshowConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'slideshow'
