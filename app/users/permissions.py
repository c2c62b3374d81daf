from dataclasses import dataclass
from typing import Iterable, List, Optional

from django.urls import URLPattern, URLResolver, get_resolver

from .models import RoleCode, RolePermission


EXEMPT_URL_NAMES = {
    "users:landing",
    "users:login",
    "users:logout",
    "users:register",
    "users:invitation_accept",
}
EXEMPT_NAMESPACES = {"admin", "portal"}

# Roles que enxergam dados de contato (email/telefone) dos clientes
CONTACT_ROLES = {RoleCode.ADMIN, RoleCode.MODERATOR}


def is_exempt(view_name: str) -> bool:
    """Rotas públicas: não exigem login nem permissão."""
    if view_name in EXEMPT_URL_NAMES:
        return True
    return view_name.split(":", 1)[0] in EXEMPT_NAMESPACES


@dataclass(frozen=True)
class PermissionCandidate:
    key: str
    label: str
    path: str
    app: str


def _view_label(pattern: URLPattern) -> str:
    callback = pattern.callback
    view_class = getattr(callback, "view_class", None)
    if view_class is not None:
        return view_class.__name__
    return getattr(callback, "__name__", "view")


def _iter_patterns(
    patterns: Iterable,
    namespace: Optional[str] = None,
    prefix: str = "",
    app: Optional[str] = None,
) -> Iterable[PermissionCandidate]:
    for p in patterns:
        if isinstance(p, URLResolver):
            ns = namespace
            if p.namespace:
                ns = f"{namespace}:{p.namespace}" if namespace else p.namespace
            next_prefix = prefix + str(p.pattern)
            next_app = p.app_name or app
            yield from _iter_patterns(p.url_patterns, ns, next_prefix, next_app)
            continue

        if not isinstance(p, URLPattern):
            continue

        if not p.name:
            continue

        key = f"{namespace}:{p.name}" if namespace else p.name
        if is_exempt(key):
            continue

        path = prefix + str(p.pattern)
        label = _view_label(p)
        yield PermissionCandidate(key=key, label=label, path=path, app=app or "")


def list_permission_candidates() -> List[PermissionCandidate]:
    resolver = get_resolver()
    items = list(_iter_patterns(resolver.url_patterns))
    return sorted(items, key=lambda x: (x.app, x.key))


def get_user_roles(user) -> set:
    roles = set()
    if getattr(user, "role", None):
        roles.add(user.role)
    if user.is_authenticated:
        roles.update(user.roles.values_list("code", flat=True))
    return roles


def user_has_permission(user, permission_key: str) -> bool:
    if getattr(user, "is_superuser", False):
        return True
    if not user.is_authenticated:
        return False
    roles = get_user_roles(user)
    if not roles:
        return False
    return RolePermission.objects.filter(
        permission_key=permission_key,
        role_code__in=roles,
        allowed=True,
    ).exists()


def is_company_admin(user) -> bool:
    if not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user.has_role(RoleCode.ADMIN)


def can_view_contacts(user) -> bool:
    """Consulta privilegiada de contato: admin/moderador da empresa ou superuser."""
    if not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return bool(get_user_roles(user) & CONTACT_ROLES)


PERMISSION_LABELS = {
    # ── Propostas ──
    "proposals:proposal_list": "Ver propostas",
    "proposals:proposal_create": "Criar proposta",
    "proposals:proposal_detail": "Ver detalhe da proposta",
    "proposals:proposal_send_email": "Enviar proposta por email",
    "proposals:proposal_whatsapp": "Compartilhar proposta por WhatsApp",
    "proposals:proposal_document": "Gerar documento da proposta",
    "proposals:proposal_pdf": "Baixar proposta em PDF",
    "proposals:proposal_reassign": "Reatribuir responsável",
    # ── Clientes ──
    "clients:client_list": "Ver clientes",
    "clients:client_create": "Cadastrar cliente",
    "clients:client_delete": "Excluir cliente",
    # ── Relatórios ──
    "reports:dashboard": "Ver relatórios",
    # ── Usuários ──
    "users:profile": "Ver meu perfil",
    "users:preferences": "Editar preferências",
    "users:company_settings": "Configurar empresa",
    "users:team_list": "Ver equipe",
    "users:team_invite": "Convidar membro",
    "users:user_role_update": "Alterar role de membro",
    "users:user_toggle_active": "Ativar/desativar membro",
}
