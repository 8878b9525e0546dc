from django.contrib import admin
from django.urls import include, path

from users import views as user_views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('users/', include('users.urls')),
    path('api/auth/session/', user_views.session_view, name='session'),
    path('api/albums/', include('albums.urls')),
    path('api/', include('photos.urls')),
    path('', include('slideshow.urls')),
]
