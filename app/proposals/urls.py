from django.urls import path
from . import views

app_name = 'proposals'

urlpatterns = [
    path('', views.proposal_list, name='proposal_list'),
    path('nova/', views.proposal_create, name='proposal_create'),
    path('<uuid:pk>/', views.proposal_detail, name='proposal_detail'),
    path('<uuid:pk>/reatribuir/', views.proposal_reassign, name='proposal_reassign'),

    # Envio
    path('<uuid:pk>/enviar-email/', views.proposal_send_email, name='proposal_send_email'),
    path('<uuid:pk>/whatsapp/', views.proposal_whatsapp, name='proposal_whatsapp'),

    # Documentos
    path('<uuid:pk>/documento/', views.proposal_document, name='proposal_document'),
    path('<uuid:pk>/pdf/', views.proposal_pdf, name='proposal_pdf'),
]
