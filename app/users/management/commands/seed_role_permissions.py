from django.core.management.base import BaseCommand

from users.models import RoleCode, RolePermission
from users.permissions import list_permission_candidates, PERMISSION_LABELS


def _grant(role_code, key, label, path):
    RolePermission.objects.update_or_create(
        role_code=role_code,
        permission_key=key,
        defaults={"allowed": True, "label": label, "path": path},
    )


# Gestão da empresa e da equipe: somente ADMIN
ADMIN_ONLY = {
    "users:company_settings",
    "users:team_list",
    "users:team_invite",
    "users:user_role_update",
    "users:user_toggle_active",
}

# Operação comercial básica
USER_KEYS = {
    "users:profile",
    "users:preferences",
    "proposals:proposal_list",
    "proposals:proposal_create",
    "proposals:proposal_detail",
    "proposals:proposal_send_email",
    "proposals:proposal_whatsapp",
    "clients:client_list",
    "clients:client_create",
    "reports:dashboard",
}


class Command(BaseCommand):
    help = "Carrega a matriz inicial de permissões por role (fail-closed)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Remove as permissões existentes antes de carregar a matriz.",
        )

    def handle(self, *args, **options):
        if options["reset"]:
            RolePermission.objects.all().delete()
            self.stdout.write(self.style.WARNING("Permissões existentes removidas."))

        candidates = list_permission_candidates()
        by_key = {c.key: c for c in candidates}

        for key, candidate in by_key.items():
            label = PERMISSION_LABELS.get(key, candidate.label)
            path = candidate.path

            # ADMIN: acesso total dentro da empresa
            _grant(RoleCode.ADMIN, key, label, path)

            # MODERATOR: tudo exceto gestão de empresa/equipe
            if key not in ADMIN_ONLY:
                _grant(RoleCode.MODERATOR, key, label, path)

            if key in USER_KEYS:
                _grant(RoleCode.USER, key, label, path)

        total = RolePermission.objects.filter(allowed=True).count()
        self.stdout.write(self.style.SUCCESS(f"Permissões carregadas: {total}"))
