from django.contrib import admin
from .models import Photo


class PhotoAdmin(admin.ModelAdmin):
    list_display = ('filename', 'album', 'width', 'height', 'processed', 'created_at')
    list_filter = ('album', 'processed')
    search_fields = ('filename', 'album__name')
    readonly_fields = ('path', 'width', 'height', 'processed')
    raw_id_fields = ('album',)

    def has_add_permission(self, request):
        # Photos only arrive through the upload endpoint
        return False


admin.site.register(Photo, PhotoAdmin)
