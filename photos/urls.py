# photos/urls.py
from django.urls import path
from . import views

app_name = 'photos'

urlpatterns = [
    path('photos/', views.photo_list, name='photo_list'),
    path('photos/upload/', views.upload_photo, name='upload_photo'),
    path('photos/<uuid:pk>/', views.delete_photo, name='delete_photo'),
    path('uploads/<path:path>', views.serve_upload, name='serve_upload'),
]
