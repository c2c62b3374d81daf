from django.urls import path
from . import views

app_name = 'clients'

urlpatterns = [
    path('', views.client_list, name='client_list'),
    path('novo/', views.client_create, name='client_create'),
    path('<uuid:pk>/excluir/', views.client_delete, name='client_delete'),
]
