"""URL configuration for the calendario app."""
from django.urls import path

from . import views

app_name = "calendario"

urlpatterns = [
    path("", views.calendar_page, name="calendar"),
    path("tablero/", views.calendar_board, name="board"),
    path("dia/<str:day>/", views.calendar_day, name="day"),
    path("partidos/nuevo/", views.match_create, name="match-create"),
    path("partidos/<int:pk>/editar/", views.match_update, name="match-update"),
    path("partidos/<int:pk>/eliminar/", views.match_delete, name="match-delete"),
    path("partidos/<int:pk>/resultado/", views.match_result, name="match-result"),
    path("compartir/", views.share_link, name="share-link"),
]
