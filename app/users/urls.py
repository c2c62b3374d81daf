"""
URLs da app Users - LegalProp
Inclui: Login, Logout, Cadastro, Perfil, Empresa, Equipe
"""
from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Autenticação
    path('', views.landing_view, name='landing'),
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('cadastro/', views.register_view, name='register'),
    path('convite/<str:token>/', views.invitation_accept_view, name='invitation_accept'),

    # Perfil
    path('perfil/', views.profile_view, name='profile'),
    path('preferencias/', views.preferences_view, name='preferences'),

    # Empresa e equipe (admin)
    path('empresa/', views.company_settings_view, name='company_settings'),
    path('equipe/', views.team_list_view, name='team_list'),
    path('equipe/convidar/', views.team_invite_view, name='team_invite'),
    path('equipe/<int:pk>/role/', views.user_role_update, name='user_role_update'),
    path('equipe/<int:pk>/toggle/', views.user_toggle_active, name='user_toggle_active'),
]
