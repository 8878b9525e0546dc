# albums/urls.py
from django.urls import path
from . import views

app_name = 'albums'

urlpatterns = [
    path('', views.album_collection, name='album_collection'),
    path('<uuid:pk>/', views.album_detail, name='album_detail'),
    path('<uuid:pk>/activate/', views.activate_album, name='activate_album'),
]
