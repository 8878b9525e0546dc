from django.contrib import admin
from .models import Album


@admin.action(description='Make the selected album the active one')
def make_active(modeladmin, request, queryset):
    if queryset.count() != 1:
        modeladmin.message_user(request, "Select exactly one album to activate.", level='error')
        return
    queryset.first().activate()


class AlbumAdmin(admin.ModelAdmin):
    list_display = ('name', 'is_active', 'photo_count', 'owner', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'description')
    readonly_fields = ('is_active',)
    actions = [make_active]

    def photo_count(self, obj):
        return obj.photos.count()
    photo_count.short_description = 'Number of Photos'


admin.site.register(Album, AlbumAdmin)
