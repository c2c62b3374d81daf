from django.conf import settings
from django.shortcuts import redirect, render, resolve_url
from django.urls import Resolver404, resolve

from .permissions import PERMISSION_LABELS, is_exempt, user_has_permission


def _denied(request, view_name, message=""):
    return render(request, "users/403.html", {
        "view_name": view_name,
        "permission_label": PERMISSION_LABELS.get(view_name, ""),
        "message": message,
    }, status=403)


class RolePermissionMiddleware:
    """
    Controle de acesso por URL nomeada, fail-closed.
    Também fixa `request.company`: toda view protegida roda dentro do
    escritório do usuário logado.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.company = None
        try:
            match = resolve(request.path_info)
        except Resolver404:
            return self.get_response(request)

        view_name = match.view_name
        if not view_name or is_exempt(view_name):
            return self.get_response(request)

        user = request.user
        if not user.is_authenticated:
            login_url = resolve_url(settings.LOGIN_URL)
            return redirect(f"{login_url}?next={request.get_full_path()}")

        # conta sem escritório só acessa o admin (superuser)
        if user.company_id is None and not user.is_superuser:
            return _denied(request, view_name, "Sua conta não está vinculada a um escritório.")
        request.company = user.company

        if not user_has_permission(user, view_name):
            return _denied(request, view_name)
        return self.get_response(request)
