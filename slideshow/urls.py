from django.urls import path
from . import views

app_name = 'slideshow'

urlpatterns = [
    path('', views.index, name='index'),
]
