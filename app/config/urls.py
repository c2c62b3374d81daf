"""
URL configuration for config project - LegalProp
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Apps
    path('', include('users.urls')),                # Auth, perfil, equipe, empresa
    path('propostas/', include('proposals.urls')),  # Propostas, envio, documentos
    path('clientes/', include('clients.urls')),     # CRM de clientes
    path('relatorios/', include('reports.urls')),   # Painéis
    path('proposta/', include('portal.urls')),      # Página pública do destinatário
]

# NOTA: Arquivos estáticos
# - Em desenvolvimento (DEBUG=True): o Django serve a partir de STATICFILES_DIRS
# - Em produção: Whitenoise serve a partir de STATIC_ROOT após collectstatic
