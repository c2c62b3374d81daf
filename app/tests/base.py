from django.test import TestCase

from users.models import RoleCode, RolePermission
from users.permissions import PERMISSION_LABELS

from .factories import Factory


class BaseAppTestCase(TestCase):
    default_password = "pass1234"

    def make_user(self, *, role=RoleCode.ADMIN, **kwargs):
        """Cria um usuário; sem `company` explícita, ganha uma empresa própria."""
        return Factory.user(role=role, password=self.default_password, **kwargs)

    def make_member(self, company, *, role=RoleCode.USER, **kwargs):
        return self.make_user(role=role, company=company, **kwargs)

    def login_as(self, user):
        self.client.force_login(user)
        return user

    def grant_permissions(self, role_code, permission_keys):
        for key in permission_keys:
            RolePermission.objects.update_or_create(
                role_code=role_code,
                permission_key=key,
                defaults={"allowed": True, "label": PERMISSION_LABELS.get(key, key), "path": ""},
            )

    def grant_all(self, role_code):
        self.grant_permissions(role_code, PERMISSION_LABELS.keys())
