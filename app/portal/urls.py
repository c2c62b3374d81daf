from django.urls import path
from . import views

app_name = 'portal'

urlpatterns = [
    path('<uuid:proposal_id>/', views.proposal_view, name='proposal_view'),
]
